"""
StackRx DSHEA Disclaimer Utilities
Deterministic disclaimer text attached to every prescription.

RULES:
1. Singular: "This statement has not been evaluated..."  -> claim_count == 1
2. Plural: "These statements have not been evaluated..." -> any other count

A prescription's claim count is the number of supplements it recommends.
"""

DSHEA_DISCLAIMER_SINGULAR = (
    "This statement has not been evaluated by the Food and Drug Administration. "
    "This product is not intended to diagnose, treat, cure, or prevent any disease."
)

DSHEA_DISCLAIMER_PLURAL = (
    "These statements have not been evaluated by the Food and Drug Administration. "
    "This product is not intended to diagnose, treat, cure, or prevent any disease."
)

MEDICAL_ADVICE_NOTICE = (
    "Consult a qualified healthcare provider before starting any supplement protocol."
)


def choose_disclaimer_prefix(claim_count: int) -> str:
    """
    Return the DSHEA disclaimer text for a claim count.

    Example:
        >>> choose_disclaimer_prefix(1)
        "This statement has not been evaluated..."

        >>> choose_disclaimer_prefix(3)
        "These statements have not been evaluated..."
    """
    if claim_count == 1:
        return DSHEA_DISCLAIMER_SINGULAR
    return DSHEA_DISCLAIMER_PLURAL


def render_disclaimer_block(claim_count: int, disclaimer_symbol: str = "*") -> str:
    """'{symbol} {DSHEA text} {medical advice notice}'"""
    text = choose_disclaimer_prefix(claim_count)
    return f"{disclaimer_symbol} {text} {MEDICAL_ADVICE_NOTICE}"
