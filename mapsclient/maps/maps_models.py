"""
Response models for the Maps Server API endpoints.

Field names follow Python conventions; the service's camelCase names are
accepted through aliases. Unknown fields are ignored so new API fields do
not break decoding.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ApiModel(BaseModel):
    """Base for all response models."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class TransportType(str, Enum):
    """Travel modes accepted by directions and ETA calls."""

    AUTOMOBILE = "Automobile"
    TRANSIT = "Transit"
    WALKING = "Walking"
    CYCLING = "Cycling"


class Location(ApiModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)

    def to_query(self) -> str:
        return f"{self.latitude},{self.longitude}"


class MapRegion(ApiModel):
    north_latitude: float
    east_longitude: float
    south_latitude: float
    west_longitude: float


class StructuredAddress(ApiModel):
    administrative_area: Optional[str] = None
    administrative_area_code: Optional[str] = None
    sub_administrative_area: Optional[str] = None
    areas_of_interest: List[str] = []
    dependent_localities: List[str] = []
    full_thoroughfare: Optional[str] = None
    locality: Optional[str] = None
    post_code: Optional[str] = None
    sub_locality: Optional[str] = None
    sub_thoroughfare: Optional[str] = None
    thoroughfare: Optional[str] = None


class Place(ApiModel):
    """A geocoded place or search result."""

    id: Optional[str] = None
    alternate_ids: List[str] = []
    name: str = ""
    coordinate: Location
    display_map_region: Optional[MapRegion] = None
    formatted_address_lines: List[str] = []
    structured_address: Optional[StructuredAddress] = None
    country: Optional[str] = None
    country_code: Optional[str] = None
    poi_category: Optional[str] = None


class PlaceResults(ApiModel):
    results: List[Place] = []


class PaginationInfo(ApiModel):
    next_page_token: Optional[str] = None
    prev_page_token: Optional[str] = None
    total_page_count: Optional[int] = None
    total_results: Optional[int] = None


class SearchResponse(ApiModel):
    display_map_region: Optional[MapRegion] = None
    pagination_info: Optional[PaginationInfo] = None
    results: List[Place] = []


class AutocompleteResult(ApiModel):
    completion_url: str
    display_lines: List[str] = []
    location: Optional[Location] = None
    structured_address: Optional[StructuredAddress] = None


class SearchAutocompleteResponse(ApiModel):
    results: List[AutocompleteResult] = []


class DirectionsRoute(ApiModel):
    name: Optional[str] = None
    distance_meters: Optional[int] = None
    duration_seconds: Optional[int] = None
    has_tolls: Optional[bool] = None
    step_indexes: List[int] = []
    transport_type: Optional[TransportType] = None


class DirectionsStep(ApiModel):
    step_path_index: Optional[int] = None
    distance_meters: Optional[int] = None
    duration_seconds: Optional[int] = None
    instructions: Optional[str] = None
    transport_type: Optional[TransportType] = None


class DirectionsResponse(ApiModel):
    origin: Optional[Place] = None
    destination: Optional[Place] = None
    routes: List[DirectionsRoute] = []
    steps: List[DirectionsStep] = []
    step_paths: List[List[Location]] = []


class EtaEstimate(ApiModel):
    destination: Optional[Location] = None
    distance_meters: Optional[int] = None
    expected_travel_time_seconds: Optional[int] = None
    static_travel_time_seconds: Optional[int] = None
    transport_type: Optional[TransportType] = None


class EtaResponse(ApiModel):
    etas: List[EtaEstimate] = []


class PlaceLookupError(ApiModel):
    error_code: str
    id: str


class PlacesResponse(ApiModel):
    results: List[Place] = []
    errors: List[PlaceLookupError] = []


class AlternateIdsEntry(ApiModel):
    """Other identifiers under which the same place is known."""

    id: Optional[str] = None
    alternate_ids: List[str] = []


class AlternateIdsResponse(ApiModel):
    results: List[AlternateIdsEntry] = []
    errors: List[PlaceLookupError] = []
