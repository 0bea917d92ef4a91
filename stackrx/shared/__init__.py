"""StackRx Shared Utilities"""

from .hashing import (
    canonicalize,
    canonicalize_and_hash,
    hash_prescription,
    verify_hash,
)
from .disclaimer import (
    choose_disclaimer_prefix,
    render_disclaimer_block,
)

__all__ = [
    "canonicalize",
    "canonicalize_and_hash",
    "hash_prescription",
    "verify_hash",
    "choose_disclaimer_prefix",
    "render_disclaimer_block",
]
