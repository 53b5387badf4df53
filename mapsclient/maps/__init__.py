"""
Endpoint wrappers for the Maps Server API.

Main classes:
- MapsClient: geocode, reverse geocode, search, autocomplete, directions,
  ETAs, place lookup and alternate place ids over the authenticated
  request pipeline
"""

from .maps_client import MapsClient
from .maps_models import (
    AlternateIdsEntry,
    AlternateIdsResponse,
    AutocompleteResult,
    DirectionsResponse,
    DirectionsRoute,
    DirectionsStep,
    EtaEstimate,
    EtaResponse,
    Location,
    MapRegion,
    Place,
    PlaceLookupError,
    PlaceResults,
    PlacesResponse,
    SearchAutocompleteResponse,
    SearchResponse,
    StructuredAddress,
    TransportType,
)

__all__ = [
    "MapsClient",
    "AlternateIdsEntry",
    "AlternateIdsResponse",
    "AutocompleteResult",
    "DirectionsResponse",
    "DirectionsRoute",
    "DirectionsStep",
    "EtaEstimate",
    "EtaResponse",
    "Location",
    "MapRegion",
    "Place",
    "PlaceLookupError",
    "PlaceResults",
    "PlacesResponse",
    "SearchAutocompleteResponse",
    "SearchResponse",
    "StructuredAddress",
    "TransportType",
]
