"""
StackRx Prescription Hashing

A prescription hash identifies the clinical content of a prescription.
Two generations from the same request hash identically even though their
generated_at stamps differ, and the hash never covers itself.
"""

import hashlib
import json
from typing import Any

from pydantic import BaseModel

HASH_PREFIX = "sha256:"

# Fields that change between identical generations
VOLATILE_FIELDS = frozenset(["generated_at", "prescription_hash"])

# Doses are computed with float arithmetic; 10 places absorbs the noise
FLOAT_PLACES = 10


def _normalise(value: Any, exclude_volatile: bool) -> Any:
    if isinstance(value, dict):
        return {
            key: _normalise(item, exclude_volatile)
            for key, item in value.items()
            if not (exclude_volatile and key in VOLATILE_FIELDS)
        }
    if isinstance(value, (list, tuple)):
        return [_normalise(item, exclude_volatile) for item in value]
    if isinstance(value, float):
        return round(value, FLOAT_PLACES)
    return value


def canonicalize(obj: Any, exclude_volatile: bool = True) -> str:
    """Compact JSON with sorted keys and rounded floats."""
    return json.dumps(
        _normalise(obj, exclude_volatile),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=True,
    )


def canonicalize_and_hash(obj: Any, exclude_volatile: bool = True) -> str:
    """Returns "sha256:<64 hex chars>"."""
    canonical = canonicalize(obj, exclude_volatile).encode("utf-8")
    return HASH_PREFIX + hashlib.sha256(canonical).hexdigest()


def hash_prescription(prescription: BaseModel) -> str:
    """Hash a prescription model through its JSON-mode dump (enums as values)."""
    return canonicalize_and_hash(prescription.model_dump(mode="json"))


def verify_hash(obj: Any, expected_hash: str, exclude_volatile: bool = True) -> bool:
    return canonicalize_and_hash(obj, exclude_volatile) == expected_hash
