import asyncio

from fastapi.testclient import TestClient

from smart_travel import main as main_module
from smart_travel import session as session_module
from smart_travel.llm import GenerationError
from smart_travel.main import app, get_session
from smart_travel.schemas import BoundingBox, Destination, TravelPlan
from smart_travel.session import PlannerSession
from smart_travel.tools.credential_store import InMemoryCredentialStore
from smart_travel.tools.maps_loader import MapLoadError, MapRuntime, MapSessionBootstrap


class _Loader:
    def detect(self):
        return None

    def start(self, credential, on_ready, on_error):
        if credential == "bad":
            on_error(MapLoadError("InvalidKeyMapError"))
        else:
            on_ready(MapRuntime(credential=credential, script_url=f"https://maps.test/{credential}"))

    def cleanup(self):
        pass


def _sample_plan() -> TravelPlan:
    return TravelPlan(
        destinations=[
            Destination(
                name="Marrakesh",
                description="Souks and gardens.",
                location={"lat": 31.6, "lng": -8.0},
                suggested_days=3,
                image_url="https://upload.wikimedia.org/marrakesh.jpg",
            ),
            Destination(
                name="Fes",
                description="Medieval medina.",
                location={"lat": 34.0, "lng": -5.0},
                suggested_days=2,
                image_url="https://upload.wikimedia.org/fes.jpg",
            ),
        ],
        bounding_box=BoundingBox(north=35.0, south=31.0, east=-4.0, west=-9.0),
    )


def _client(credential="good") -> tuple:
    session = PlannerSession(MapSessionBootstrap(_Loader()), InMemoryCredentialStore(credential))
    if credential:
        asyncio.run(session.initialize_maps())
    app.dependency_overrides[get_session] = lambda: session
    return TestClient(app), session


def teardown_function():
    app.dependency_overrides.clear()


def test_health():
    client = TestClient(app)
    assert client.get("/health").json() == {"status": "ok"}


def test_default_session_is_published_after_map_initialisation(monkeypatch):
    published_during_load = []

    class RecordingLoader(_Loader):
        def start(self, credential, on_ready, on_error):
            published_during_load.append(main_module._session)
            super().start(credential, on_ready, on_error)

    monkeypatch.setattr(main_module, "_session", None)
    monkeypatch.setattr(main_module, "HttpRuntimeLoader", RecordingLoader)
    monkeypatch.setattr(main_module, "FileCredentialStore", lambda: InMemoryCredentialStore("good"))

    body = TestClient(app).get("/api/session").json()

    assert published_during_load == [None]
    assert body["mapsReady"] is True
    assert body["mapState"] == "ready"
    assert body["credentialPromptOpen"] is False
    assert body["mapError"] is None
    assert main_module._session is not None


def test_plan_endpoint_returns_session_view(monkeypatch):
    monkeypatch.setattr(session_module, "fetch_travel_plan", lambda country, days: _sample_plan())
    client, _ = _client()

    response = client.post("/api/plan", json={"country": "Morocco", "days": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["country"] == "Morocco"
    assert body["mapsReady"] is True
    assert body["plan"]["destinations"][0]["suggestedDays"] == 3
    assert body["plan"]["boundingBox"]["west"] == -9.0


def test_plan_endpoint_maps_generation_failure_to_502(monkeypatch):
    def broken(country, days):
        raise GenerationError("Invalid data structure")

    monkeypatch.setattr(session_module, "fetch_travel_plan", broken)
    client, _ = _client()

    response = client.post("/api/plan", json={"country": "Morocco", "days": 5})

    assert response.status_code == 502
    assert "couldn't fetch a travel plan" in response.json()["detail"]


def test_plan_endpoint_rejects_invalid_input():
    client, _ = _client()

    response = client.post("/api/plan", json={"country": " ", "days": 5})

    assert response.status_code == 422
    assert response.json()["detail"] == "Please enter a country name."


def test_plan_endpoint_requires_map_credential():
    client, session = _client(credential=None)

    response = client.post("/api/plan", json={"country": "Morocco", "days": 5})

    assert response.status_code == 409
    assert session.credential_prompt_open is True


def test_credential_endpoint():
    client, session = _client(credential=None)

    assert client.post("/api/credential", json={"credential": ""}).status_code == 400

    failed = client.post("/api/credential", json={"credential": "bad"})
    assert failed.status_code == 502
    assert session.credentials.get() is None

    ok = client.post("/api/credential", json={"credential": "good"})
    assert ok.status_code == 200
    assert ok.json()["mapsReady"] is True
    assert ok.json()["credentialPromptOpen"] is False


def test_select_and_close_destination(monkeypatch):
    monkeypatch.setattr(session_module, "fetch_travel_plan", lambda country, days: _sample_plan())

    def broken(*args):
        raise GenerationError("Completion request failed")

    monkeypatch.setattr(session_module, "fetch_destination_details", broken)
    client, _ = _client()
    client.post("/api/plan", json={"country": "Morocco", "days": 5})

    selected = client.post("/api/destinations/select", json={"name": "Fes"})
    assert selected.status_code == 200
    body = selected.json()
    assert body["selected"] == "Fes"
    assert body["details"]["dailyPlans"][0]["title"] == "Error"

    assert client.post("/api/destinations/select", json={"name": "Atlantis"}).status_code == 404

    closed = client.delete("/api/destinations/selection").json()
    assert closed["selected"] is None and closed["details"] is None


def test_map_endpoint(monkeypatch):
    monkeypatch.setattr(session_module, "fetch_travel_plan", lambda country, days: _sample_plan())
    client, _ = _client()

    assert client.get("/api/map").status_code == 409

    client.post("/api/plan", json={"country": "Morocco", "days": 5})
    scene = client.get("/api/map").json()

    assert scene["scriptUrl"] == "https://maps.test/good"
    assert [m["title"] for m in scene["markers"]] == ["Marrakesh", "Fes"]
    assert len(scene["path"]) == 2
    assert scene["bounds"]["north"] == 35.0
