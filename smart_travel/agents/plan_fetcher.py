"""Trip-level planning: ask the model for destinations and normalise the day split."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
import logging
import os

from pydantic import ValidationError

from smart_travel.llm import GenerationError, call_llm_json
from smart_travel.response_schemas import (
    TRAVEL_PLAN_SCHEMA,
    TRAVEL_PLAN_SCHEMA_NAME,
    required_fields,
)
from smart_travel.schemas import Destination, TravelPlan

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRAVEL_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

PLAN_TEMPERATURE = 0.7

PLAN_PROMPT_TEMPLATE = (
    "You are an expert travel planner. Create a travel plan for a {days}-day trip to {country}. "
    "Your plan should distribute the {days} days among 3 to 5 key cities or regions. "
    "For each destination, provide its name, a short compelling description, a publicly accessible, "
    "directly linkable, high-quality image URL (preferably from Wikimedia Commons or a similar "
    "open-source repository), its precise latitude and longitude, and the number of days you suggest "
    "spending there. Ensure the sum of 'suggestedDays' equals the total trip duration of {days} days. "
    "Also, provide a bounding box that encompasses all these locations."
)


def build_plan_prompt(country: str, days: int) -> str:
    return PLAN_PROMPT_TEMPLATE.format(country=country.strip(), days=days)


def reconcile_days(destinations: List[Destination], days: int) -> List[Destination]:
    """Force the suggested day counts to add up to ``days``.

    The whole difference goes to the longest stay (first one on ties). That
    stay is clamped to at least one day, so when the model overshoots badly
    the total can still differ from ``days`` afterwards.
    """
    total = sum(dest.suggested_days for dest in destinations)
    if total == days or not destinations:
        return destinations

    logger.warning(
        "Model suggested %d days, but user requested %d. Normalizing...", total, days
    )
    diff = days - total
    target_index = 0
    max_days = 0
    for idx, dest in enumerate(destinations):
        if dest.suggested_days > max_days:
            max_days = dest.suggested_days
            target_index = idx

    target = destinations[target_index]
    target.suggested_days += diff
    if target.suggested_days <= 0:
        target.suggested_days = 1
    return destinations


def fetch_travel_plan(country: str, days: int, *, model: Optional[str] = None) -> TravelPlan:
    """Request a fresh plan for ``country`` spread over ``days`` days."""
    if not country or not country.strip():
        raise ValueError("country must not be blank")
    if days < 1:
        raise ValueError("days must be at least 1")

    payload: Dict[str, Any] = call_llm_json(
        build_plan_prompt(country, days),
        schema_name=TRAVEL_PLAN_SCHEMA_NAME,
        schema=TRAVEL_PLAN_SCHEMA,
        temperature=PLAN_TEMPERATURE,
        model=model,
    )

    missing = [key for key in required_fields(TRAVEL_PLAN_SCHEMA) if payload.get(key) is None]
    if missing:
        logger.warning("Plan payload missing %s", ", ".join(missing))
        raise GenerationError("Invalid data structure")

    try:
        plan = TravelPlan.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Plan payload failed validation: %s", exc)
        raise GenerationError("Invalid data structure") from exc

    reconcile_days(plan.destinations, days)
    logger.info(
        "Plan for %s ready with %d destinations (%s)",
        country,
        len(plan.destinations),
        ", ".join(f"{d.name}:{d.suggested_days}" for d in plan.destinations),
    )
    return plan
