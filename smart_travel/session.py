# smart_travel/session.py
from __future__ import annotations

import asyncio
import logging
import os
from enum import Enum
from typing import Optional

from smart_travel.agents.detail_fetcher import fetch_destination_details, placeholder_details
from smart_travel.agents.plan_fetcher import fetch_travel_plan
from smart_travel.llm import GenerationError
from smart_travel.schemas import (
    Destination,
    DestinationDetails,
    MapScene,
    SessionView,
    TravelPlan,
)
from smart_travel.tools.credential_store import CredentialStore
from smart_travel.tools.maps_loader import MapLoadError, MapSessionBootstrap

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRAVEL_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

MSG_BLANK_COUNTRY = "Please enter a country name."
MSG_INVALID_DAYS = "Please enter a valid number of days."
MSG_BLANK_CREDENTIAL = "Please enter a valid API key."
MSG_CREDENTIAL_REQUIRED = "Please set a valid Google Maps API key to search."
MSG_MAPS_FAILED = "Could not load Google Maps. Please check your API key and network connection."
MSG_PLAN_FAILED = (
    "Sorry, we couldn't fetch a travel plan. The country might be invalid "
    "or there was a network issue. Please try again."
)


class SearchFailure(str, Enum):
    INVALID_INPUT = "invalid_input"
    CREDENTIAL_REQUIRED = "credential_required"
    BUSY = "busy"
    GENERATION = "generation"


class PlannerSession:
    """State behind the planner UI for one user.

    All mutation happens on the event loop; completion calls are pushed to
    worker threads so a slow model never blocks other requests.
    """

    def __init__(self, bootstrap: MapSessionBootstrap, credentials: CredentialStore):
        self.bootstrap = bootstrap
        self.credentials = credentials

        self.country = ""
        self.days = 7
        self.plan: Optional[TravelPlan] = None
        self.loading = False
        self.error: Optional[str] = None

        self.selected: Optional[Destination] = None
        self.details: Optional[DestinationDetails] = None
        self.detail_loading = False
        self._detail_request = 0

        self.credential: Optional[str] = None
        self.credential_prompt_open = False
        self.maps_ready = False

    # ---------- map credential ----------
    async def initialize_maps(self) -> bool:
        stored = self.credentials.get() or os.getenv("GOOGLE_MAPS_API_KEY")
        if not stored:
            self.credential_prompt_open = True
            return False
        self.credential = stored
        return await self._load_maps(stored)

    async def save_credential(self, key: str) -> bool:
        if not key or not key.strip():
            self.error = MSG_BLANK_CREDENTIAL
            self.credential_prompt_open = True
            return False
        key = key.strip()
        self.credentials.set(key)
        self.credential = key
        self.credential_prompt_open = False
        return await self._load_maps(key)

    async def _load_maps(self, key: str) -> bool:
        try:
            await self.bootstrap.ensure_loaded(key)
        except MapLoadError:
            logger.warning("Maps API failed to load", exc_info=True)
            self.error = MSG_MAPS_FAILED
            self.credentials.clear()
            self.credential = None
            self.maps_ready = False
            self.credential_prompt_open = True
            return False
        self.maps_ready = True
        self.credential_prompt_open = False
        self.error = None
        return True

    # ---------- search ----------
    async def search(self, country: str, days: int) -> Optional[SearchFailure]:
        """Fetch a new plan. Returns ``None`` on success, otherwise why it was refused or failed."""
        if self.loading:
            logger.info("Search for %s ignored; another search is in flight", country)
            return SearchFailure.BUSY
        if not country or not country.strip():
            self.error = MSG_BLANK_COUNTRY
            return SearchFailure.INVALID_INPUT
        if days < 1:
            self.error = MSG_INVALID_DAYS
            return SearchFailure.INVALID_INPUT
        if not self.credential or not self.maps_ready:
            self.error = MSG_CREDENTIAL_REQUIRED
            self.credential_prompt_open = True
            return SearchFailure.CREDENTIAL_REQUIRED

        country = country.strip()
        self.loading = True
        self.error = None
        try:
            plan = await asyncio.to_thread(fetch_travel_plan, country, days)
        except GenerationError:
            logger.warning("Plan fetch for %s (%d days) failed", country, days, exc_info=True)
            self.error = MSG_PLAN_FAILED
            return SearchFailure.GENERATION
        finally:
            self.loading = False

        self.plan = plan
        self.country = country
        self.days = days
        self.selected = None
        self.details = None
        self.detail_loading = False
        return None

    # ---------- destination detail ----------
    async def select_destination(self, name: str) -> DestinationDetails:
        if self.plan is None:
            raise LookupError("no travel plan loaded")
        destination = self.plan.find(name)
        if destination is None:
            raise LookupError(f"unknown destination {name!r}")

        if self.selected is not destination:
            self.details = None
        self.selected = destination
        self.detail_loading = True
        self._detail_request += 1
        token = self._detail_request
        plan = self.plan

        try:
            details = await asyncio.to_thread(
                fetch_destination_details, destination, self.country, plan.destinations
            )
        except (GenerationError, ValueError):
            logger.warning("Failed to fetch destination details for %s", name, exc_info=True)
            details = placeholder_details()

        # only the most recent request may settle the panel, even for the same destination
        if token != self._detail_request or self.selected is not destination:
            logger.info("Discarding late details for %s; a newer request superseded it", name)
            return details

        self.details = details
        self.detail_loading = False
        return details

    def close_details(self) -> None:
        self.selected = None
        self.details = None
        self.detail_loading = False

    # ---------- rendering ----------
    def map_scene(self) -> Optional[MapScene]:
        runtime = self.bootstrap.runtime
        if not self.maps_ready or runtime is None or self.plan is None:
            return None
        return runtime.render(self.plan, self.selected.name if self.selected else None)

    def snapshot(self) -> SessionView:
        return SessionView(
            country=self.country,
            days=self.days,
            plan=self.plan,
            loading=self.loading,
            error=self.error,
            selected=self.selected.name if self.selected else None,
            details=self.details,
            detail_loading=self.detail_loading,
            credential_prompt_open=self.credential_prompt_open,
            maps_ready=self.maps_ready,
            map_state=self.bootstrap.state.value,
            map_error=str(self.bootstrap.last_error) if self.bootstrap.last_error else None,
        )
