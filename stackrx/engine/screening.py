"""
Hard-Stop Screener

Absolute contraindications checked BEFORE any supplement is selected.
Screening rules are evaluated in order; the first one that fires decides
the outcome and aborts the whole generation.

The pregnancy rule is conditional: it only fires when the protocol
carries botanical actives (is_botanical in the catalog).
"""

import logging
from typing import List, Optional

from stackrx.catalog.models import ProtocolDefinition, SupplementCatalogEntry
from stackrx.engine.models import ClinicalFlags, PatientProfile
from stackrx.safety.matching import rule_matches
from stackrx.safety.models import HardStopResult, ScreeningRule

logger = logging.getLogger(__name__)


def botanical_candidates(
    protocol: ProtocolDefinition,
    catalog: List[SupplementCatalogEntry],
) -> List[str]:
    """Protocol supplement ids flagged as botanical in the catalog."""
    botanical_ids = {entry.id for entry in catalog if entry.is_botanical}
    return [sid for sid in protocol.all_supplement_ids if sid in botanical_ids]


def screen_hard_stops(
    profile: PatientProfile,
    flags: Optional[ClinicalFlags],
    protocol: ProtocolDefinition,
    catalog: List[SupplementCatalogEntry],
    rules: List[ScreeningRule],
) -> HardStopResult:
    """
    Evaluate screening rules in order, first match wins.

    Args:
        profile: Patient profile (pregnancy status)
        flags: Clinical flags (may be None)
        protocol: Protocol resolved for the goal
        catalog: Supplement catalog (botanical classification)
        rules: Ordered screening rules

    Returns:
        HardStopResult; is_hard_stop False when nothing fires
    """
    botanicals = None

    for rule in rules:
        if rule.requires_botanical_candidates:
            if botanicals is None:
                botanicals = botanical_candidates(protocol, catalog)
            if not botanicals:
                continue

        if rule_matches(rule, profile, flags):
            logger.warning(f"Hard stop {rule.rule_id}: {rule.reason}")
            return HardStopResult(is_hard_stop=True, reason=rule.reason, rule_id=rule.rule_id)

    return HardStopResult(is_hard_stop=False)
