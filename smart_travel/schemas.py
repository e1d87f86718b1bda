from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict

# ------- Itinerary models -------
class Coordinates(BaseModel):
    lat: float
    lng: float

class BoundingBox(BaseModel):
    north: float
    south: float
    east: float
    west: float

class Destination(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str
    location: Coordinates
    suggested_days: int = Field(..., alias="suggestedDays")
    image_url: str = Field(..., alias="imageUrl")

class TravelPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    destinations: List[Destination]
    bounding_box: BoundingBox = Field(..., alias="boundingBox")

    def find(self, name: str) -> Optional[Destination]:
        return next((d for d in self.destinations if d.name == name), None)

# ------- Destination detail models -------
class Activity(BaseModel):
    name: str
    description: str

class DailyPlan(BaseModel):
    day: int
    title: str
    activities: List[Activity] = Field(default_factory=list)

class PackingAndTips(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    packing_list: List[str] = Field(default_factory=list, alias="packingList")
    travel_tips: List[str] = Field(default_factory=list, alias="travelTips")

class MovieRecommendation(BaseModel):
    title: str
    reason: str

class Entertainment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    movie_recommendations: List[MovieRecommendation] = Field(default_factory=list, alias="movieRecommendations")
    streaming_sites: List[str] = Field(default_factory=list, alias="streamingSites")

class DestinationDetails(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    daily_plans: List[DailyPlan] = Field(..., alias="dailyPlans")
    directions_to_next: str = Field(..., alias="directionsToNext")
    packing_and_tips: PackingAndTips = Field(..., alias="packingAndTips")
    entertainment: Entertainment

# ------- Map scene -------
class MapMarker(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    position: Coordinates
    selected: bool = False
    z_index: int = Field(1, alias="zIndex")
    icon: Optional[str] = None

class MapScene(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    script_url: str = Field(..., alias="scriptUrl")
    center: Coordinates = Coordinates(lat=0.0, lng=0.0)
    zoom: int = 2
    markers: List[MapMarker] = Field(default_factory=list)
    path: List[Coordinates] = Field(default_factory=list)
    bounds: Optional[BoundingBox] = None

# ------- Request models -------
class PlanRequest(BaseModel):
    country: str
    days: int = 7

class SelectRequest(BaseModel):
    name: str

class CredentialRequest(BaseModel):
    credential: str

# ------- Session view -------
class SessionView(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    country: str = ""
    days: int = 7
    plan: Optional[TravelPlan] = None
    loading: bool = False
    error: Optional[str] = None
    selected: Optional[str] = None
    details: Optional[DestinationDetails] = None
    detail_loading: bool = Field(False, alias="detailLoading")
    credential_prompt_open: bool = Field(False, alias="credentialPromptOpen")
    maps_ready: bool = Field(False, alias="mapsReady")
    map_state: str = Field("unstarted", alias="mapState")
    map_error: Optional[str] = Field(None, alias="mapError")
