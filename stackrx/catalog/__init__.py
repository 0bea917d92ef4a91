"""
Catalog Module

Read-only supplement and protocol reference data.
"""

from .models import (
    EvidenceLevel,
    BudgetTier,
    SupplementCatalogEntry,
    ProtocolDefinition,
)
from .provider import CatalogProvider, ReferenceCatalog, REFERENCE_CATALOG_PATH

__all__ = [
    # Models
    "EvidenceLevel",
    "BudgetTier",
    "SupplementCatalogEntry",
    "ProtocolDefinition",
    # Providers
    "CatalogProvider",
    "ReferenceCatalog",
    "REFERENCE_CATALOG_PATH",
]
