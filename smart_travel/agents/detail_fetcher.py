"""Destination drill-down: daily plans, directions, packing and entertainment."""
from __future__ import annotations

from typing import Optional, Sequence
import logging
import os

from pydantic import ValidationError

from smart_travel.llm import GenerationError, call_llm_json
from smart_travel.response_schemas import (
    DESTINATION_DETAILS_SCHEMA,
    DESTINATION_DETAILS_SCHEMA_NAME,
)
from smart_travel.schemas import (
    Activity,
    DailyPlan,
    Destination,
    DestinationDetails,
    Entertainment,
    MovieRecommendation,
    PackingAndTips,
)

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRAVEL_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

DETAIL_TEMPERATURE = 0.5

DETAIL_PROMPT_TEMPLATE = """You are a helpful travel assistant planning a trip to {country}. The user wants a detailed plan for their {days}-day stay in "{name}". The next major destination on their trip is "{next_name}".

Please provide the following in JSON format:
1. A day-by-day itinerary for the {days} day(s) in "{name}". Each day should have a title and 2-4 activities with short descriptions.
2. Narrative travel directions from "{name}" to "{next_name}".
3. A "packingAndTips" object containing a 'packingList' of 5-7 essential items for this city, and two 'travelTips'.
4. An "entertainment" object with two 'movieRecommendations' (title and reason) relevant to the location, and a list of 2-3 'streamingSites' where they could be watched.
"""


def next_destination(destination: Destination, all_destinations: Sequence[Destination]) -> Destination:
    """The stop after ``destination``, looping back to the first one.

    Destinations are matched by name. An unknown name resolves to the first
    stop of the trip.
    """
    if not all_destinations:
        raise ValueError("trip has no destinations")
    names = [d.name for d in all_destinations]
    try:
        current = names.index(destination.name)
    except ValueError:
        current = -1
    return all_destinations[(current + 1) % len(all_destinations)]


def build_detail_prompt(destination: Destination, country: str, upcoming: Destination) -> str:
    return DETAIL_PROMPT_TEMPLATE.format(
        country=country,
        days=destination.suggested_days,
        name=destination.name,
        next_name=upcoming.name,
    )


def fetch_destination_details(
    destination: Destination,
    country: str,
    all_destinations: Sequence[Destination],
    *,
    model: Optional[str] = None,
) -> DestinationDetails:
    upcoming = next_destination(destination, all_destinations)
    payload = call_llm_json(
        build_detail_prompt(destination, country, upcoming),
        schema_name=DESTINATION_DETAILS_SCHEMA_NAME,
        schema=DESTINATION_DETAILS_SCHEMA,
        temperature=DETAIL_TEMPERATURE,
        model=model,
    )
    try:
        details = DestinationDetails.model_validate(payload)
    except ValidationError as exc:
        logger.warning("Detail payload for %s failed validation: %s", destination.name, exc)
        raise GenerationError("Invalid data structure") from exc

    # Day count is advisory only; the model's plan is kept as returned.
    if len(details.daily_plans) != destination.suggested_days:
        logger.warning(
            "Model returned %d daily plans for %s, expected %d",
            len(details.daily_plans),
            destination.name,
            destination.suggested_days,
        )
    return details


def placeholder_details() -> DestinationDetails:
    """Well-formed stand-in shown when the detail request fails."""
    return DestinationDetails(
        daily_plans=[
            DailyPlan(
                day=1,
                title="Error",
                activities=[Activity(name="Could not load plan", description="Please try again.")],
            )
        ],
        directions_to_next="Could not load directions.",
        packing_and_tips=PackingAndTips(packing_list=["-"], travel_tips=["-"]),
        entertainment=Entertainment(
            movie_recommendations=[
                MovieRecommendation(title="Error", reason="Could not load recommendations.")
            ],
            streaming_sites=["-"],
        ),
    )
