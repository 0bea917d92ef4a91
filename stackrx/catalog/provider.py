"""
Catalog Provider

Contract for the catalog collaborator plus the bundled reference
implementation backed by a versioned JSON file.

The engine never writes to the catalog: entries are loaded once and
served as frozen models.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from .models import ProtocolDefinition, SupplementCatalogEntry

logger = logging.getLogger(__name__)

REFERENCE_CATALOG_PATH = Path(__file__).parent / "data" / "reference_catalog.v1.json"

# Goal used when a goal has no protocol of its own
FALLBACK_PROTOCOL_GOAL = "ENERGY_RECOVERY"


class CatalogProvider:
    """
    Catalog lookup contract.

    - get_protocol(goal) -> ProtocolDefinition
    - list_supplements() -> all SupplementCatalogEntry records
    """

    def get_protocol(self, goal: str) -> Optional[ProtocolDefinition]:
        raise NotImplementedError

    def list_supplements(self) -> List[SupplementCatalogEntry]:
        raise NotImplementedError


class ReferenceCatalog(CatalogProvider):
    """In-memory catalog loaded from the reference JSON file."""

    def __init__(
        self,
        supplements: List[SupplementCatalogEntry],
        protocols: List[ProtocolDefinition],
        version: str = "custom",
    ):
        self.version = version
        self._supplements = list(supplements)
        self._by_id: Dict[str, SupplementCatalogEntry] = {s.id: s for s in self._supplements}
        self._protocols: Dict[str, ProtocolDefinition] = {p.goal: p for p in protocols}

        for protocol in protocols:
            unknown = [sid for sid in protocol.all_supplement_ids if sid not in self._by_id]
            if unknown:
                logger.warning(f"Protocol {protocol.protocol_id} references unknown supplements: {unknown}")

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "ReferenceCatalog":
        path = path or REFERENCE_CATALOG_PATH
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

        supplements = [SupplementCatalogEntry(**row) for row in data.get("supplements", [])]
        protocols = [ProtocolDefinition(**row) for row in data.get("protocols", [])]
        logger.info(
            f"Loaded catalog {data.get('version', '?')}: "
            f"{len(supplements)} supplements, {len(protocols)} protocols"
        )
        return cls(supplements, protocols, version=data.get("version", "unknown"))

    def get_protocol(self, goal: str) -> Optional[ProtocolDefinition]:
        protocol = self._protocols.get(goal)
        if protocol is None and goal != FALLBACK_PROTOCOL_GOAL:
            logger.warning(f"No protocol for goal '{goal}', falling back to {FALLBACK_PROTOCOL_GOAL}")
            protocol = self._protocols.get(FALLBACK_PROTOCOL_GOAL)
        return protocol

    def list_supplements(self) -> List[SupplementCatalogEntry]:
        return list(self._supplements)

    def get_supplement(self, supplement_id: str) -> Optional[SupplementCatalogEntry]:
        return self._by_id.get(supplement_id)
