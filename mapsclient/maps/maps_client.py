"""
Maps Server API client.

Thin endpoint wrappers (geocoding, search, autocomplete, directions, ETAs,
place lookup, alternate ids) over the authenticated request pipeline,
plus factories that assemble the pipeline from configuration.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union
from urllib.parse import parse_qsl

from ..auth.auth_exchange import AccessTokenExchanger
from ..auth.auth_signer import SigningKey, TokenSigner
from ..auth.auth_token_manager import TokenManager
from ..config.config_module import ConfigError, load_config
from ..config.logger_module import log_info
from ..pipeline.pipeline_backoff import BackoffPolicy, RateLimitState
from ..pipeline.pipeline_config import PipelineConfig
from ..pipeline.pipeline_executor import RequestExecutor
from ..pipeline.pipeline_transport import HttpTransport, RequestDescriptor
from .maps_models import (
    AlternateIdsResponse,
    AutocompleteResult,
    DirectionsResponse,
    EtaResponse,
    Location,
    Place,
    PlaceResults,
    PlacesResponse,
    SearchAutocompleteResponse,
    SearchResponse,
    TransportType,
)


GEOCODE_PATH = "/v1/geocode"
REVERSE_GEOCODE_PATH = "/v1/reverseGeocode"
SEARCH_PATH = "/v1/search"
AUTOCOMPLETE_PATH = "/v1/searchAutocomplete"
DIRECTIONS_PATH = "/v1/directions"
ETAS_PATH = "/v1/etas"
PLACE_PATH = "/v1/place"
PLACE_ALTERNATE_IDS_PATH = "/v1/place/alternateIds"

DEFAULT_LANGUAGE = "en-US"
MAX_ETA_DESTINATIONS = 10

Coordinates = Union[Location, Tuple[float, float]]


def _coordinate(value: Coordinates) -> str:
    """Format a coordinate as "lat,lng", validating its range."""
    if isinstance(value, Location):
        return value.to_query()
    lat, lng = value
    if not -90 <= lat <= 90:
        raise ValueError(f"Invalid latitude: {lat}")
    if not -180 <= lng <= 180:
        raise ValueError(f"Invalid longitude: {lng}")
    return f"{lat},{lng}"


def _require_text(value: str, name: str) -> str:
    if not value or not value.strip():
        raise ValueError(f"Empty {name} provided")
    return value.strip()


def _transport_type(value: Optional[Union[TransportType, str]]) -> Optional[str]:
    if value is None:
        return None
    return TransportType(value).value


class MapsClient:
    """
    Client for the Maps Server API.

    Every call goes through a RequestExecutor, so tokens, retries and rate
    limits are handled the same way for all endpoints. Instances are safe
    to share between threads.
    """

    def __init__(self, executor: RequestExecutor, max_workers: int = 8):
        """
        Args:
            executor: Pipeline that performs the calls
            max_workers: Thread pool size for concurrent batch calls
        """
        if max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {max_workers}")
        self.executor = executor
        self.max_workers = max_workers

    @classmethod
    def from_config(cls,
                    config: PipelineConfig,
                    sleep: Callable[[float], None] = time.sleep,
                    clock: Callable[[], float] = time.time) -> "MapsClient":
        """
        Assemble the signer, token manager, transport and executor.

        Raises:
            ConfigError: If identifiers or key material are missing
            SigningError: If the key material cannot be loaded
        """
        if not config.team_id or not config.key_id:
            raise ConfigError("MAPS_TEAM_ID and MAPS_KEY_ID are required")
        if config.private_key:
            signing_key = SigningKey.from_pem(config.private_key, config.team_id, config.key_id)
        elif config.private_key_path:
            signing_key = SigningKey.from_file(config.private_key_path, config.team_id, config.key_id)
        else:
            raise ConfigError("Either MAPS_PRIVATE_KEY or MAPS_PRIVATE_KEY_PATH is required")

        transport = HttpTransport(
            base_url=config.base_url,
            timeout=config.request_timeout_seconds,
            origin=config.origin,
        )
        signer = TokenSigner(signing_key, max_lifetime_seconds=config.max_token_lifetime_seconds)
        exchanger = AccessTokenExchanger(transport, clock=clock) if config.exchange_tokens else None
        token_manager = TokenManager(
            signer,
            lifetime_seconds=config.token_lifetime_seconds,
            refresh_margin_seconds=config.token_refresh_margin_seconds,
            refresh_ratio=config.token_refresh_ratio,
            clock=clock,
            exchanger=exchanger,
            origin=config.origin,
        )
        policy = BackoffPolicy(
            base_delay=config.backoff_base_seconds,
            max_delay=config.backoff_max_seconds,
            multiplier=config.backoff_multiplier,
            jitter=config.backoff_jitter,
        )
        executor = RequestExecutor(
            token_manager,
            transport,
            backoff_policy=policy,
            rate_limit_state=RateLimitState(),
            max_attempts=config.max_attempts,
            sleep=sleep,
            clock=clock,
        )

        log_info(
            f"MapsClient initialized (base_url={config.base_url}, "
            f"max_attempts={config.max_attempts}, exchange_tokens={config.exchange_tokens})"
        )
        return cls(executor)

    @classmethod
    def from_env(cls, env_path: Optional[str] = ".env") -> "MapsClient":
        """Load a .env file (if given) and build a client from MAPS_* variables."""
        if env_path:
            load_config(env_path)
        return cls.from_config(PipelineConfig.from_env())

    def geocode(self,
                address: str,
                limit_to_countries: Optional[Sequence[str]] = None,
                language: Optional[str] = None,
                search_location: Optional[Coordinates] = None,
                user_location: Optional[Coordinates] = None) -> PlaceResults:
        """
        Geocode an address.

        Args:
            address: Address text
            limit_to_countries: ISO country codes to restrict results to
            language: Response language (BCP 47)
            search_location: Hint location to bias results
            user_location: The user's location

        Returns:
            Matching places
        """
        params = [
            ("q", _require_text(address, "address")),
            ("limitToCountries", list(limit_to_countries) if limit_to_countries else None),
            ("lang", language),
            ("searchLocation", _coordinate(search_location) if search_location is not None else None),
            ("userLocation", _coordinate(user_location) if user_location is not None else None),
        ]
        return self._get(GEOCODE_PATH, params, PlaceResults, "geocode")

    def reverse_geocode(self, latitude: float, longitude: float, language: Optional[str] = None) -> PlaceResults:
        """Find the places at a coordinate."""
        params = [
            ("loc", _coordinate((latitude, longitude))),
            ("lang", language if language and language.strip() else DEFAULT_LANGUAGE),
        ]
        return self._get(REVERSE_GEOCODE_PATH, params, PlaceResults, "reverseGeocode")

    def search(self,
               query: str,
               language: Optional[str] = None,
               limit_to_countries: Optional[Sequence[str]] = None,
               search_location: Optional[Coordinates] = None,
               result_type_filter: Optional[Sequence[str]] = None,
               include_poi_categories: Optional[Sequence[str]] = None,
               exclude_poi_categories: Optional[Sequence[str]] = None,
               page_token: Optional[str] = None) -> SearchResponse:
        """Search for places and points of interest."""
        params = [
            ("q", _require_text(query, "query")),
            ("lang", language),
            ("limitToCountries", list(limit_to_countries) if limit_to_countries else None),
            ("searchLocation", _coordinate(search_location) if search_location is not None else None),
            ("resultTypeFilter", list(result_type_filter) if result_type_filter else None),
            ("includePoiCategories", list(include_poi_categories) if include_poi_categories else None),
            ("excludePoiCategories", list(exclude_poi_categories) if exclude_poi_categories else None),
            ("enablePagination", True if page_token else None),
            ("pageToken", page_token),
        ]
        return self._get(SEARCH_PATH, params, SearchResponse, "search")

    def autocomplete(self,
                     query: str,
                     language: Optional[str] = None,
                     search_location: Optional[Coordinates] = None,
                     result_type_filter: Optional[Sequence[str]] = None) -> SearchAutocompleteResponse:
        """Autocomplete a partial query; results carry completion URLs."""
        params = [
            ("q", _require_text(query, "query")),
            ("lang", language),
            ("searchLocation", _coordinate(search_location) if search_location is not None else None),
            ("resultTypeFilter", list(result_type_filter) if result_type_filter else None),
        ]
        return self._get(AUTOCOMPLETE_PATH, params, SearchAutocompleteResponse, "searchAutocomplete")

    def resolve_completion_url(self, completion_url: str) -> SearchResponse:
        """
        Run the search an autocomplete result points to.

        Args:
            completion_url: Path and query from an AutocompleteResult, e.g.
                "/v1/search?q=Apple%20Park&metadata=..."
        """
        completion_url = _require_text(completion_url, "completion URL")
        path, _, query = completion_url.partition("?")
        params = []
        if query:
            params = parse_qsl(query, keep_blank_values=True)
        return self._get(path, params, SearchResponse, "search")

    def resolve_completion_urls(self,
                                results: Union[SearchAutocompleteResponse, Iterable[AutocompleteResult]]) -> List[SearchResponse]:
        """
        Resolve several autocomplete results concurrently.

        Results come back in input order. If any call fails, its error is
        raised once all calls have finished.
        """
        if isinstance(results, SearchAutocompleteResponse):
            results = results.results
        urls = [result.completion_url for result in results]
        if not urls:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(urls))) as pool:
            futures = [pool.submit(self.resolve_completion_url, url) for url in urls]
            errors = [future.exception() for future in futures]

        for error in errors:
            if error is not None:
                raise error
        return [future.result() for future in futures]

    def directions(self,
                   origin: Union[str, Coordinates],
                   destination: Union[str, Coordinates],
                   transport_type: Optional[Union[TransportType, str]] = None,
                   language: Optional[str] = None,
                   requests_alternate_routes: bool = False,
                   avoid: Optional[Sequence[str]] = None) -> DirectionsResponse:
        """
        Get directions between two places.

        Args:
            origin: Address text or (lat, lng)
            destination: Address text or (lat, lng)
            transport_type: Travel mode
            language: Response language
            requests_alternate_routes: Ask for more than one route
            avoid: Features to avoid (e.g. "Tolls")
        """
        params = [
            ("origin", self._endpoint(origin, "origin")),
            ("destination", self._endpoint(destination, "destination")),
            ("transportType", _transport_type(transport_type)),
            ("lang", language),
            ("requestsAlternateRoutes", True if requests_alternate_routes else None),
            ("avoid", list(avoid) if avoid else None),
        ]
        return self._get(DIRECTIONS_PATH, params, DirectionsResponse, "directions")

    def etas(self,
             origin: Coordinates,
             destinations: Sequence[Coordinates],
             transport_type: Optional[Union[TransportType, str]] = None,
             departure_date: Optional[str] = None,
             arrival_date: Optional[str] = None) -> EtaResponse:
        """Estimate travel times from one origin to up to ten destinations."""
        if not destinations:
            raise ValueError("At least one destination is required")
        if len(destinations) > MAX_ETA_DESTINATIONS:
            raise ValueError(f"At most {MAX_ETA_DESTINATIONS} destinations are allowed, got {len(destinations)}")
        if departure_date and arrival_date:
            raise ValueError("departure_date and arrival_date are mutually exclusive")

        params = [
            ("origin", _coordinate(origin)),
            ("destinations", "|".join(_coordinate(destination) for destination in destinations)),
            ("transportType", _transport_type(transport_type)),
            ("departureDate", departure_date),
            ("arrivalDate", arrival_date),
        ]
        return self._get(ETAS_PATH, params, EtaResponse, "etas")

    def lookup_place(self, place_id: str, language: Optional[str] = None) -> Place:
        """Fetch one place by identifier."""
        place_id = _require_text(place_id, "place id")
        params = [("lang", language if language and language.strip() else DEFAULT_LANGUAGE)]
        return self._get(f"{PLACE_PATH}/{place_id}", params, Place, "place")

    def lookup_places(self, place_ids: Sequence[str], language: Optional[str] = None) -> PlacesResponse:
        """Fetch several places by identifier; unknown ids are reported in `errors`."""
        ids = [_require_text(place_id, "place id") for place_id in place_ids]
        if not ids:
            raise ValueError("At least one place id is required")
        params = [
            ("ids", ids),
            ("lang", language if language and language.strip() else DEFAULT_LANGUAGE),
        ]
        return self._get(PLACE_PATH, params, PlacesResponse, "place")

    def lookup_alternate_ids(self, place_ids: Sequence[str]) -> AlternateIdsResponse:
        """Map place ids to the other ids the same places are known by."""
        ids = [_require_text(place_id, "place id") for place_id in place_ids]
        if not ids:
            raise ValueError("At least one place id is required")
        return self._get(PLACE_ALTERNATE_IDS_PATH, [("ids", ids)], AlternateIdsResponse, "placeAlternateIds")

    def close(self) -> None:
        self.executor.transport.close()

    def __enter__(self) -> "MapsClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @staticmethod
    def _endpoint(value: Union[str, Coordinates], name: str) -> str:
        if isinstance(value, str):
            return _require_text(value, name)
        return _coordinate(value)

    def _get(self, path: str, params, shape, operation: str):
        descriptor = RequestDescriptor.get(path, params, operation=operation)
        return self.executor.execute(descriptor, shape)
