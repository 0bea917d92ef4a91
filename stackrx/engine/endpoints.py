"""
Prescription Endpoints
HTTP boundary of the engine. Protocol and catalog are filled in from the
reference catalog when the client does not send them.

    GET  /api/v1/prescriptions/health
    GET  /api/v1/prescriptions/goals
    GET  /api/v1/prescriptions/catalog?tier=ESSENTIAL
    POST /api/v1/prescriptions/generate
"""

import logging
from functools import lru_cache
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, HTTPException

from stackrx import __version__
from stackrx.catalog.models import BudgetTier
from stackrx.catalog.provider import ReferenceCatalog
from stackrx.config import EngineConfig, load_engine_config
from stackrx.engine.budget import filter_catalog_by_tier, get_budget_label
from stackrx.engine.goals import get_available_goals
from stackrx.engine.orchestrate import generate_from_payload
from stackrx.errors import RequestValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/prescriptions", tags=["prescriptions"])


@lru_cache(maxsize=1)
def get_catalog() -> ReferenceCatalog:
    return ReferenceCatalog.load()


@lru_cache(maxsize=1)
def get_engine_config() -> EngineConfig:
    return load_engine_config()


@router.get("/health")
def prescriptions_health(catalog: ReferenceCatalog = Depends(get_catalog)):
    return {
        "status": "ok",
        "version": __version__,
        "catalog_version": catalog.version,
        "supplement_count": len(catalog.list_supplements()),
    }


@router.get("/goals")
def prescriptions_goals():
    """Supported goals with labels and descriptions."""
    goals = get_available_goals()
    return {"status": "success", "goals": goals, "count": len(goals)}


@router.get("/catalog")
def prescriptions_catalog(
    tier: Optional[BudgetTier] = None,
    catalog: ReferenceCatalog = Depends(get_catalog),
):
    """Reference catalog, optionally restricted to a budget tier (tiers are cumulative)."""
    supplements = catalog.list_supplements()
    if tier is not None:
        supplements = filter_catalog_by_tier(supplements, tier)
    return {
        "status": "success",
        "tier": tier.value if tier is not None else None,
        "tier_label": get_budget_label(tier) if tier is not None else None,
        "supplements": [s.model_dump(mode="json") for s in supplements],
        "count": len(supplements),
    }


@router.post("/generate")
def prescriptions_generate(
    payload: Dict[str, Any] = Body(...),
    catalog: ReferenceCatalog = Depends(get_catalog),
    config: EngineConfig = Depends(get_engine_config),
):
    """
    Generate a prescription.

    400 on request validation errors, 422 when generation is aborted
    (invalid goal, hard stop, safety hard block).
    """
    request = dict(payload)

    if "protocol" not in request and isinstance(request.get("goal"), str):
        protocol = catalog.get_protocol(request["goal"])
        if protocol is not None:
            request["protocol"] = protocol.model_dump()
    if "supplement_catalog" not in request:
        request["supplement_catalog"] = [s.model_dump() for s in catalog.list_supplements()]

    result = generate_from_payload(request, config)

    if result.errors:
        status_code = 400 if result.error_code == RequestValidationError.code else 422
        raise HTTPException(status_code=status_code, detail=result.model_dump(mode="json"))

    return result.model_dump(mode="json")
