"""
Time-of-Day Scheduler

Each dosed supplement lands in exactly one bucket: the first one whose
keyword appears in its timing advice (morning, then afternoon, then
evening). Supplements with no time keyword fill the morning stack up to
its capacity and overflow into the afternoon.
"""

import logging
from typing import List, Optional

from stackrx.config import EngineConfig, get_default_config
from stackrx.engine.models import DosedSupplement, ScheduledStacks

logger = logging.getLogger(__name__)

# Matched case-sensitively against the timing text
MORNING_KEYWORDS = ("Morning", "morning", "AM")
AFTERNOON_KEYWORDS = ("Afternoon", "afternoon", "PM")
EVENING_KEYWORDS = ("Evening", "evening", "bed")


def _mentions(timing: str, keywords) -> bool:
    return any(keyword in timing for keyword in keywords)


def schedule_supplements(
    supplements: List[DosedSupplement],
    config: Optional[EngineConfig] = None,
) -> ScheduledStacks:
    """Greedy, order-preserving assignment to morning / afternoon / evening."""
    config = config or get_default_config()

    morning: List[DosedSupplement] = []
    afternoon: List[DosedSupplement] = []
    evening: List[DosedSupplement] = []
    unscheduled: List[DosedSupplement] = []

    for supplement in supplements:
        if _mentions(supplement.timing, MORNING_KEYWORDS):
            morning.append(supplement)
        elif _mentions(supplement.timing, AFTERNOON_KEYWORDS):
            afternoon.append(supplement)
        elif _mentions(supplement.timing, EVENING_KEYWORDS):
            evening.append(supplement)
        else:
            unscheduled.append(supplement)

    for supplement in unscheduled:
        if len(morning) < config.morning_capacity:
            morning.append(supplement)
        else:
            afternoon.append(supplement)

    logger.debug(
        f"Scheduled {len(supplements)} supplements: "
        f"morning={len(morning)}, afternoon={len(afternoon)}, evening={len(evening)}"
    )
    return ScheduledStacks(morning=morning, afternoon=afternoon, evening=evening)
