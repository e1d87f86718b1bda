from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Iterable, Optional, Protocol
from urllib.parse import urlencode
import asyncio
import logging
import os

import httpx

from smart_travel.schemas import BoundingBox, Coordinates, Destination, MapMarker, MapScene, TravelPlan

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
_level = os.getenv("TRAVEL_PLANNER_LOG_LEVEL", "INFO").upper()
logger.setLevel(getattr(logging, _level, logging.INFO))
logger.propagate = False

SCRIPT_ENDPOINT = "https://maps.googleapis.com/maps/api/js"
INIT_CALLBACK = "initMap"
SELECTED_ICON = "https://maps.google.com/mapfiles/ms/icons/blue-dot.png"


class MapLoadError(RuntimeError):
    """The map runtime could not be initialised."""


class LoaderState(str, Enum):
    UNSTARTED = "unstarted"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


@dataclass
class MapRuntime:
    """Handle to a loaded map runtime; builds scenes the browser widget renders."""

    credential: str
    script_url: str

    def create_map(self) -> MapScene:
        return MapScene(script_url=self.script_url, center=Coordinates(lat=0.0, lng=0.0), zoom=2)

    def place_marker(self, scene: MapScene, destination: Destination) -> MapMarker:
        marker = MapMarker(title=destination.name, position=destination.location)
        scene.markers.append(marker)
        return marker

    def draw_path(self, scene: MapScene, coordinates: Iterable[Coordinates]) -> None:
        scene.path = list(coordinates)

    def fit_bounds(self, scene: MapScene, box: BoundingBox) -> None:
        scene.bounds = box

    def highlight(self, scene: MapScene, name: Optional[str]) -> None:
        for marker in scene.markers:
            marker.selected = name is not None and marker.title == name
            marker.icon = SELECTED_ICON if marker.selected else None
            marker.z_index = 100 if marker.selected else 1

    def render(self, plan: TravelPlan, selected: Optional[str] = None) -> MapScene:
        scene = self.create_map()
        if plan.destinations:
            for dest in plan.destinations:
                self.place_marker(scene, dest)
            self.draw_path(scene, (d.location for d in plan.destinations))
            self.fit_bounds(scene, plan.bounding_box)
        self.highlight(scene, selected)
        return scene


ReadyCallback = Callable[[MapRuntime], None]
ErrorCallback = Callable[[Exception], None]


class RuntimeLoader(Protocol):
    def detect(self) -> Optional[MapRuntime]: ...

    def start(self, credential: str, on_ready: ReadyCallback, on_error: ErrorCallback) -> None: ...

    def cleanup(self) -> None: ...


class HttpRuntimeLoader:
    """Fetch the Google Maps script for a credential and report the outcome via callbacks."""

    def __init__(self, *, timeout: float = 10.0):
        self.timeout = timeout
        self._runtime: Optional[MapRuntime] = None
        self._task: Optional[asyncio.Task] = None

    @staticmethod
    def script_url(credential: str) -> str:
        return f"{SCRIPT_ENDPOINT}?{urlencode({'key': credential, 'callback': INIT_CALLBACK})}"

    def detect(self) -> Optional[MapRuntime]:
        return self._runtime

    def start(self, credential: str, on_ready: ReadyCallback, on_error: ErrorCallback) -> None:
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._load(credential, on_ready, on_error))

    def cleanup(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self._runtime = None

    async def _load(self, credential: str, on_ready: ReadyCallback, on_error: ErrorCallback) -> None:
        try:
            url = self.script_url(credential)
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                r = await client.get(url, headers={"User-Agent": "smart-travel/1.0"})
                r.raise_for_status()
            if INIT_CALLBACK not in r.text:
                logger.warning("Map script did not reference the %s callback", INIT_CALLBACK)
                error: Optional[MapLoadError] = MapLoadError("Google Maps script did not initialise.")
            else:
                self._runtime = MapRuntime(credential=credential, script_url=url)
                error = None
        except httpx.HTTPError as exc:
            logger.warning("Map script request failed: %s", exc)
            error = MapLoadError("Google Maps script failed to load.")
        except Exception as exc:
            # httpx.InvalidURL and friends are not HTTPError subclasses
            logger.warning("Map script request could not be made: %r", exc, exc_info=True)
            error = MapLoadError("Google Maps script failed to load.")

        # finished; cleanup() from a callback must not cancel this task
        self._task = None
        if error is not None:
            on_error(error)
        else:
            on_ready(self._runtime)


class MapSessionBootstrap:
    """Load the map runtime at most once at a time and share the outcome.

    ``ensure_loaded`` may be awaited by any number of callers. The first call
    starts a load; everyone waiting on it sees the same result. Success is
    kept for the life of the object; a failure is forgotten so the next call
    can try again with another credential.
    """

    def __init__(self, loader: RuntimeLoader):
        self._loader = loader
        self._state = LoaderState.UNSTARTED
        self._pending: Optional[asyncio.Future] = None
        self._runtime: Optional[MapRuntime] = None
        self.last_error: Optional[MapLoadError] = None

    @property
    def state(self) -> LoaderState:
        return self._state

    @property
    def runtime(self) -> Optional[MapRuntime]:
        return self._runtime

    async def ensure_loaded(self, credential: str) -> MapRuntime:
        if self._state is LoaderState.READY and self._runtime is not None:
            return self._runtime

        attempt = self._pending
        if attempt is None:
            existing = self._loader.detect()
            if existing is not None:
                logger.info("Map runtime already present; skipping load")
                self._runtime = existing
                self._state = LoaderState.READY
                return existing
            attempt = self._start(credential)

        return await asyncio.shield(attempt)

    def _start(self, credential: str) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        attempt = loop.create_future()
        self._pending = attempt
        self._state = LoaderState.LOADING
        logger.info("Loading map runtime")
        try:
            self._loader.start(
                credential,
                partial(self._on_ready, attempt),
                partial(self._on_error, attempt),
            )
        except Exception as exc:
            self._on_error(attempt, exc)
        return attempt

    def _on_ready(self, attempt: asyncio.Future, runtime: MapRuntime) -> None:
        if attempt is not self._pending or attempt.done():
            return
        self._runtime = runtime
        self._state = LoaderState.READY
        self.last_error = None
        logger.info("Map runtime ready")
        attempt.set_result(runtime)

    def _on_error(self, attempt: asyncio.Future, exc: Exception) -> None:
        if attempt is not self._pending or attempt.done():
            return
        error = exc if isinstance(exc, MapLoadError) else MapLoadError(str(exc) or "Map runtime failed to load.")
        self._pending = None
        self._state = LoaderState.FAILED
        self.last_error = error
        self._loader.cleanup()
        logger.warning("Map runtime failed to load: %s", error)
        attempt.set_exception(error)
