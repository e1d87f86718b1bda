"""Destination detail fetch, next-stop lookup and the failure placeholder."""
from typing import Any, Dict

import pytest

from smart_travel.agents import detail_fetcher
from smart_travel.agents.detail_fetcher import (
    fetch_destination_details,
    next_destination,
    placeholder_details,
)
from smart_travel.llm import GenerationError
from smart_travel.response_schemas import DESTINATION_DETAILS_SCHEMA
from smart_travel.schemas import Destination, DestinationDetails


def _dest(name: str, days: int = 2) -> Destination:
    return Destination(
        name=name,
        description=f"{name} is lovely.",
        location={"lat": 41.0, "lng": 2.0},
        suggested_days=days,
        image_url=f"https://upload.wikimedia.org/{name}.jpg",
    )


def _details_payload(days: int) -> Dict[str, Any]:
    return {
        "dailyPlans": [
            {
                "day": n,
                "title": f"Day {n}",
                "activities": [
                    {"name": "Old town walk", "description": "Start early to beat the crowds."},
                    {"name": "Tapas crawl", "description": "Try the local vermouth."},
                ],
            }
            for n in range(1, days + 1)
        ],
        "directionsToNext": "Take the high-speed train, about 3 hours.",
        "packingAndTips": {
            "packingList": ["Sunscreen", "Walking shoes", "Adapter", "Light jacket", "Water bottle"],
            "travelTips": ["Dinner starts late.", "Buy a metro card."],
        },
        "entertainment": {
            "movieRecommendations": [
                {"title": "Vicky Cristina Barcelona", "reason": "Shot on location."},
                {"title": "L'Auberge Espagnole", "reason": "Student life in the city."},
            ],
            "streamingSites": ["Netflix", "Prime Video"],
        },
    }


def test_next_destination_follows_trip_order():
    x, y, z = _dest("X"), _dest("Y"), _dest("Z")
    assert next_destination(x, [x, y, z]) is y
    assert next_destination(y, [x, y, z]) is z


def test_next_destination_wraps_around_to_first_stop():
    x, y, z = _dest("X"), _dest("Y"), _dest("Z")
    assert next_destination(z, [x, y, z]) is x


def test_next_destination_matches_by_name():
    x, y = _dest("X"), _dest("Y")
    assert next_destination(_dest("X", days=9), [x, y]) is y


def test_next_destination_of_single_stop_is_itself():
    x = _dest("X")
    assert next_destination(x, [x]) is x


def test_next_destination_requires_destinations():
    with pytest.raises(ValueError):
        next_destination(_dest("X"), [])


def test_fetch_destination_details_builds_prompt_for_next_stop(monkeypatch):
    captured: Dict[str, Any] = {}

    def fake_call_llm_json(prompt, *, schema_name, schema, temperature, model=None):
        captured.update(prompt=prompt, schema=schema, temperature=temperature)
        return _details_payload(3)

    monkeypatch.setattr(detail_fetcher, "call_llm_json", fake_call_llm_json)

    barcelona, madrid, seville = _dest("Barcelona", 3), _dest("Madrid"), _dest("Seville")
    details = fetch_destination_details(seville, "Spain", [barcelona, madrid, seville])
    assert isinstance(details, DestinationDetails)

    details = fetch_destination_details(barcelona, "Spain", [barcelona, madrid, seville])

    assert captured["temperature"] == 0.5
    assert captured["schema"] is DESTINATION_DETAILS_SCHEMA
    assert "trip to Spain" in captured["prompt"]
    assert '3-day stay in "Barcelona"' in captured["prompt"]
    assert 'The next major destination on their trip is "Madrid"' in captured["prompt"]
    assert len(details.daily_plans) == 3
    assert details.packing_and_tips.travel_tips == ["Dinner starts late.", "Buy a metro card."]
    assert details.entertainment.streaming_sites == ["Netflix", "Prime Video"]


def test_fetch_destination_details_keeps_mismatched_day_count(monkeypatch):
    monkeypatch.setattr(detail_fetcher, "call_llm_json", lambda *a, **kw: _details_payload(1))

    lisbon = _dest("Lisbon", 4)
    details = fetch_destination_details(lisbon, "Portugal", [lisbon])

    assert [plan.day for plan in details.daily_plans] == [1]


def test_fetch_destination_details_rejects_malformed_payload(monkeypatch):
    payload = _details_payload(2)
    payload.pop("entertainment")
    monkeypatch.setattr(detail_fetcher, "call_llm_json", lambda *a, **kw: payload)

    with pytest.raises(GenerationError):
        fetch_destination_details(_dest("Porto"), "Portugal", [_dest("Porto")])


def test_placeholder_details_is_fully_populated():
    details = placeholder_details()

    assert details.daily_plans[0].day == 1
    assert details.daily_plans[0].title == "Error"
    assert details.daily_plans[0].activities[0].name == "Could not load plan"
    assert details.directions_to_next == "Could not load directions."
    assert details.packing_and_tips.packing_list == ["-"]
    assert details.packing_and_tips.travel_tips == ["-"]
    assert details.entertainment.movie_recommendations[0].reason == "Could not load recommendations."
    assert details.entertainment.streaming_sites == ["-"]

    dumped = details.model_dump(by_alias=True)
    assert set(dumped) == {"dailyPlans", "directionsToNext", "packingAndTips", "entertainment"}
