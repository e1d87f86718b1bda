"""JSON schemas sent to the completion service as response-shape constraints.

Field names and requiredness mirror ``smart_travel.schemas``. Structured
output in strict mode requires every object to list all of its properties as
required and to forbid additional properties.
"""
from __future__ import annotations

from typing import Any, Dict, List


def _obj(properties: Dict[str, Any], *, description: str | None = None) -> Dict[str, Any]:
    schema: Dict[str, Any] = {
        "type": "object",
        "properties": properties,
        "required": list(properties.keys()),
        "additionalProperties": False,
    }
    if description:
        schema["description"] = description
    return schema


def _array(items: Dict[str, Any], description: str) -> Dict[str, Any]:
    return {"type": "array", "description": description, "items": items}


def _field(kind: str, description: str) -> Dict[str, Any]:
    return {"type": kind, "description": description}


TRAVEL_PLAN_SCHEMA_NAME = "travel_plan"

TRAVEL_PLAN_SCHEMA: Dict[str, Any] = _obj({
    "destinations": _array(
        _obj({
            "name": _field("string", "The name of the tourist destination."),
            "description": _field("string", "A brief, engaging description of the destination (2-3 sentences)."),
            "location": _obj({
                "lat": _field("number", "Latitude of the destination."),
                "lng": _field("number", "Longitude of the destination."),
            }),
            "suggestedDays": _field("integer", "The recommended number of days to spend in this destination."),
            "imageUrl": _field("string", "A publicly accessible, high-quality image URL for the destination."),
        }),
        "A list of 3-5 key tourist destinations (cities or regions).",
    ),
    "boundingBox": _obj(
        {
            "north": _field("number", "Northernmost latitude."),
            "south": _field("number", "Southernmost latitude."),
            "east": _field("number", "Easternmost longitude."),
            "west": _field("number", "Westernmost longitude."),
        },
        description="The geographical bounding box that contains all the destinations.",
    ),
})

DESTINATION_DETAILS_SCHEMA_NAME = "destination_details"

DESTINATION_DETAILS_SCHEMA: Dict[str, Any] = _obj({
    "dailyPlans": _array(
        _obj({
            "day": _field("integer", "The day number (e.g., 1, 2, 3)."),
            "title": _field("string", "A catchy title for the day's theme (e.g., 'Historical Heart & Culinary Delights')."),
            "activities": _array(
                _obj({
                    "name": _field("string", "Name of the activity or place to visit."),
                    "description": _field(
                        "string",
                        "A one-sentence description, which could include a tip or a restaurant suggestion.",
                    ),
                }),
                "A list of activities for the day.",
            ),
        }),
        "A detailed day-by-day itinerary for the specified number of days.",
    ),
    "directionsToNext": _field(
        "string",
        "Narrative travel directions from the current destination to the next, "
        "mentioning mode of transport and estimated time.",
    ),
    "packingAndTips": _obj({
        "packingList": _array(
            {"type": "string"},
            "A list of 5-7 essential items to pack for this specific destination.",
        ),
        "travelTips": _array(
            {"type": "string"},
            "Two useful, concise travel tips for this destination.",
        ),
    }),
    "entertainment": _obj({
        "movieRecommendations": _array(
            _obj({
                "title": _field("string", "The title of the movie."),
                "reason": _field("string", "A brief reason why it's a good movie to watch for this trip."),
            }),
            "Two movie recommendations that are filmed in or are thematically related to the destination.",
        ),
        "streamingSites": _array(
            {"type": "string"},
            "A list of 2-3 popular streaming sites where these movies might be available.",
        ),
    }),
})


def required_fields(schema: Dict[str, Any]) -> List[str]:
    """Top-level required keys of a response schema."""
    return list(schema.get("required", []))
