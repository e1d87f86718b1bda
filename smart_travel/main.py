from __future__ import annotations

import os
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from smart_travel.schemas import CredentialRequest, MapScene, PlanRequest, SelectRequest, SessionView
from smart_travel.session import PlannerSession, SearchFailure
from smart_travel.tools.credential_store import FileCredentialStore
from smart_travel.tools.maps_loader import HttpRuntimeLoader, MapSessionBootstrap

app = FastAPI(title="Smart Travel Planner API")

# Allow local development UIs (Vite dev server, static builds) to reach the
# API. Operators can scope this via TRAVEL_PLANNER_ALLOWED_ORIGINS.
raw_origins = os.getenv("TRAVEL_PLANNER_ALLOWED_ORIGINS") or "*"
allowed_origins = [origin.strip() for origin in raw_origins.split(",") if origin.strip()]
if not allowed_origins:
    allowed_origins = ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_SEARCH_STATUS = {
    SearchFailure.INVALID_INPUT: 422,
    SearchFailure.CREDENTIAL_REQUIRED: 409,
    SearchFailure.BUSY: 409,
    SearchFailure.GENERATION: 502,
}

_session: Optional[PlannerSession] = None


async def get_session() -> PlannerSession:
    """The single planner session served by this process, created on first use."""
    global _session
    if _session is None:
        session = PlannerSession(
            MapSessionBootstrap(HttpRuntimeLoader()),
            FileCredentialStore(),
        )
        await session.initialize_maps()
        # published only once initialised; a concurrent first request keeps the winner
        if _session is None:
            _session = session
    return _session


@app.get("/health")
def health() -> Dict[str, Any]:
    return {"status": "ok"}


@app.get("/api/session", response_model=SessionView)
async def api_session(session: PlannerSession = Depends(get_session)) -> SessionView:
    return session.snapshot()


@app.post("/api/credential", response_model=SessionView)
async def api_credential(body: CredentialRequest, session: PlannerSession = Depends(get_session)) -> SessionView:
    if not body.credential.strip():
        await session.save_credential(body.credential)
        raise HTTPException(status_code=400, detail=session.error)
    if not await session.save_credential(body.credential):
        raise HTTPException(status_code=502, detail=session.error)
    return session.snapshot()


@app.post("/api/plan", response_model=SessionView)
async def api_plan(body: PlanRequest, session: PlannerSession = Depends(get_session)) -> SessionView:
    """Primary endpoint consumed by the search bar."""
    failure = await session.search(body.country, body.days)
    if failure is not None:
        detail = session.error if failure is not SearchFailure.BUSY else "A search is already in progress."
        raise HTTPException(status_code=_SEARCH_STATUS[failure], detail=detail)
    return session.snapshot()


@app.post("/api/destinations/select", response_model=SessionView)
async def api_select(body: SelectRequest, session: PlannerSession = Depends(get_session)) -> SessionView:
    try:
        await session.select_destination(body.name)
    except LookupError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return session.snapshot()


@app.delete("/api/destinations/selection", response_model=SessionView)
async def api_close_details(session: PlannerSession = Depends(get_session)) -> SessionView:
    session.close_details()
    return session.snapshot()


@app.get("/api/map", response_model=MapScene)
async def api_map(session: PlannerSession = Depends(get_session)) -> MapScene:
    scene = session.map_scene()
    if scene is None:
        raise HTTPException(status_code=409, detail="Map is not available until a plan is loaded and the map runtime is ready.")
    return scene

# To run the app: uvicorn smart_travel.main:app --reload
