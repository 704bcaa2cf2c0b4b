"""
Location search and customer location bookkeeping.

The geocoder is a Nominatim-compatible HTTP API queried with `requests`.
A failed search is never an error for callers: it degrades to an empty
result list.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import requests
from flask import current_app
from sqlalchemy.orm import Session

from app.models import Customer, Location

logger = logging.getLogger(__name__)

# (latitude, longitude, latitude_delta, longitude_delta)
RegionHint = Tuple[float, float, float, float]


@dataclass(frozen=True)
class PlaceResult:
    """Named point returned by the geocoder."""
    name: str
    latitude: float
    longitude: float
    address: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'address': self.address,
        }


class LocationSearchService:
    """
    Geocoding client.

    Usage:
        service = LocationSearchService.from_app(current_app)
        places = service.search('coffee', region_hint=(37.33, -122.0, 0.05, 0.05))
    """

    def __init__(
        self,
        base_url: str,
        user_agent: str = 'diary-service/1.0',
        timeout: float = 5,
        limit: int = 10,
        default_region: Optional[RegionHint] = None,
        http: Optional[requests.Session] = None
    ):
        self.base_url = base_url
        self.timeout = timeout
        self.limit = limit
        self.default_region = default_region
        self.http = http or requests.Session()
        self.http.headers.update({
            'User-Agent': user_agent,
            'Accept': 'application/json'
        })

    @classmethod
    def from_app(cls, app) -> 'LocationSearchService':
        return cls(
            base_url=app.config['GEOCODER_URL'],
            user_agent=app.config.get('GEOCODER_USER_AGENT', 'diary-service/1.0'),
            timeout=app.config.get('GEOCODER_TIMEOUT', 5),
            limit=app.config.get('GEOCODER_LIMIT', 10),
            default_region=app.config.get('LOCATION_DEFAULT_REGION')
        )

    @staticmethod
    def _viewbox(region: RegionHint) -> str:
        """Geocoder viewbox 'left,top,right,bottom' around a center and span."""
        lat, lon, lat_delta, lon_delta = region
        return f"{lon - lon_delta},{lat + lat_delta},{lon + lon_delta},{lat - lat_delta}"

    def search(self, query: str, region_hint: Optional[RegionHint] = None) -> List[PlaceResult]:
        """
        Resolve a free-text query to ranked places.

        Args:
            query: Place name or address
            region_hint: Preferred area; results outside it are still allowed

        Returns:
            Places in the geocoder's ranking order ([] on any failure)
        """
        query = (query or '').strip()
        if not query:
            return []

        params = {'q': query, 'format': 'jsonv2', 'limit': self.limit}
        region = region_hint or self.default_region
        if region:
            params['viewbox'] = self._viewbox(region)

        try:
            response = self.http.get(self.base_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"[LOCATIONS] Search failed for '{query}': {e}")
            return []

        if not isinstance(payload, list):
            logger.warning(f"[LOCATIONS] Unexpected geocoder payload for '{query}'")
            return []

        return [place for place in (self._parse_place(item) for item in payload) if place]

    @staticmethod
    def _parse_place(item: Any) -> Optional[PlaceResult]:
        if not isinstance(item, dict):
            return None
        try:
            latitude = float(item['lat'])
            longitude = float(item['lon'])
        except (KeyError, TypeError, ValueError):
            return None
        address = item.get('display_name') or ''
        name = item.get('name') or address.split(',')[0].strip() or 'Unknown'
        return PlaceResult(name=name, latitude=latitude, longitude=longitude, address=address)


def get_location_search_service() -> LocationSearchService:
    """Get the LocationSearchService bound to the current app (one per app)."""
    service = current_app.extensions.get('location_search')
    if service is None:
        service = LocationSearchService.from_app(current_app)
        current_app.extensions['location_search'] = service
    return service


def location_from_place(place: PlaceResult) -> Location:
    return Location(name=place.name, latitude=place.latitude, longitude=place.longitude)


class LocationWorkingList:
    """Form-local copy of a customer's locations, saved with replace semantics."""

    def __init__(self, locations: Optional[Iterable[Location]] = None):
        self._items: List[Location] = list(locations or [])

    @classmethod
    def from_customer(cls, customer: Customer) -> 'LocationWorkingList':
        return cls(customer.locations)

    @property
    def items(self) -> List[Location]:
        return list(self._items)

    def add_place(self, place: PlaceResult) -> Location:
        location = location_from_place(place)
        self._items.append(location)
        return location

    def remove(self, location: Location) -> bool:
        for index, item in enumerate(self._items):
            if item is location:
                del self._items[index]
                return True
        return False

    def retain_ids(self, keep_ids: Iterable[int]) -> None:
        keep = set(keep_ids)
        self._items = [loc for loc in self._items if loc.id is None or loc.id in keep]

    def __len__(self):
        return len(self._items)

    def __iter__(self):
        return iter(self._items)


def add_location_to_customer(session: Session, customer: Customer, place: PlaceResult) -> str:
    """
    Save a picked place as a new location of the customer right away.

    Used by the ticket form's "add new location" choice; the returned name
    becomes the ticket's location string.
    """
    location = location_from_place(place)
    customer.locations.append(location)
    session.flush()
    logger.info(f"[LOCATIONS] Added '{location.name}' to customer {customer.id}")
    return location.name


class LocationQueryTracker:
    """
    Debounce and staleness guard for as-you-type location search.

    A query becomes due once no keystroke has arrived for the quiet period.
    Each dispatched search gets a generation token; only the response for
    the latest dispatched token is accepted.

    Usage:
        tracker = LocationQueryTracker(quiet_period=0.4)
        tracker.update('caf', now=t0)
        query = tracker.due(now=t0 + 0.5)      # 'caf'
        token = tracker.begin(query)
        tracker.complete(token, places)        # True unless a newer search began
    """

    def __init__(self, quiet_period: float = 0.4):
        self.quiet_period = quiet_period
        self._pending_query: Optional[str] = None
        self._last_keystroke: Optional[float] = None
        self._generation = 0
        self.results: List[PlaceResult] = []
        self.active_query: Optional[str] = None

    @classmethod
    def from_app(cls, app) -> 'LocationQueryTracker':
        return cls(quiet_period=app.config.get('LOCATION_SEARCH_DEBOUNCE_MS', 400) / 1000)

    def update(self, query: str, now: float) -> None:
        """Record the latest text typed into the search field."""
        self._pending_query = query
        self._last_keystroke = now
        if not (query or '').strip():
            # Clearing the field clears results and drops in-flight responses
            self._pending_query = None
            self._generation += 1
            self.results = []
            self.active_query = None

    def due(self, now: float) -> Optional[str]:
        """Return the query to dispatch if the quiet period has elapsed."""
        if self._pending_query is None or self._last_keystroke is None:
            return None
        if now - self._last_keystroke < self.quiet_period:
            return None
        query = self._pending_query
        self._pending_query = None
        return query

    def begin(self, query: str) -> int:
        """Mark a search as dispatched; returns its generation token."""
        self._generation += 1
        self.active_query = query
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def complete(self, token: int, results: List[PlaceResult]) -> bool:
        """Accept results only if they belong to the latest dispatched search."""
        if not self.is_current(token):
            logger.debug(f"[LOCATIONS] Discarding stale response (token {token} < {self._generation})")
            return False
        self.results = list(results)
        return True
