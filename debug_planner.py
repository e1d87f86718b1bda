# debug_planner.py
import asyncio
import json

from smart_travel.agents.detail_fetcher import fetch_destination_details
from smart_travel.agents.plan_fetcher import fetch_travel_plan


async def main():
    country = "Japan"
    days = 10

    plan = await asyncio.to_thread(fetch_travel_plan, country, days)
    print("➡️ Plan returned:\n")
    print(json.dumps(plan.model_dump(by_alias=True), indent=2))

    first = plan.destinations[0]
    details = await asyncio.to_thread(fetch_destination_details, first, country, plan.destinations)
    print(f"\n➡️ Details for {first.name}:\n")
    print(json.dumps(details.model_dump(by_alias=True), indent=2))


if __name__ == "__main__":
    asyncio.run(main())
