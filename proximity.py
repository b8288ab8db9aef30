"""Proximity Index: "is there a place of category C within R metres of P?"

Two backends:
- DatabaseProximityIndex searches the local places table
- HttpProximityIndex asks a remote places service with a bounded timeout

Both raise ProximityTimeoutError / ProximityUnavailableError on dependency
failure; the trigger engine treats those as "no match".
"""

import math
from typing import List, Optional, Protocol, Tuple

import httpx
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

import crud
from config import settings
from database import Place, CategoryEnum
from errors import ProximityTimeoutError, ProximityUnavailableError
from logger_config import setup_logger
from schemas import LocationSample

logger = setup_logger(__name__, 'engine.log')

EARTH_RADIUS_METERS = 6371008.8


def haversine_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in metres."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = (
        math.sin(dphi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_METERS * c


class ProximityIndex(Protocol):
    def query(self, category: CategoryEnum, point: LocationSample, radius_meters: float) -> Optional[Place]:
        """Nearest place of the category within radius, or None."""
        ...


class DatabaseProximityIndex:
    """Proximity lookups over the places table."""

    def __init__(self, db: Session):
        self.db = db

    def nearby(
        self,
        category: CategoryEnum,
        point: LocationSample,
        radius_meters: float,
        limit: Optional[int] = None,
    ) -> List[Tuple[Place, float]]:
        """Places of the category within radius, nearest first, with distances in metres."""
        try:
            places = crud.get_places_by_category(self.db, category)
        except OperationalError as e:
            self.db.rollback()
            raise ProximityUnavailableError(str(e)) from e

        hits = []
        for place in places:
            distance = haversine_meters(point.lat, point.lng, place.latitude, place.longitude)
            if distance <= radius_meters:
                hits.append((place, distance))
        hits.sort(key=lambda hit: hit[1])
        if limit is not None:
            hits = hits[:limit]
        return hits

    def query(self, category: CategoryEnum, point: LocationSample, radius_meters: float) -> Optional[Place]:
        hits = self.nearby(category, point, radius_meters, limit=1)
        return hits[0][0] if hits else None


class HttpProximityIndex:
    """Proximity lookups against a remote places service.

    The service answers GET /nearby?lat=&lng=&category=&radius= with a JSON
    list of places sorted by distance.
    """

    def __init__(self, base_url: str, timeout: float = 2.0, client: Optional[httpx.Client] = None):
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)

    def close(self):
        self.client.close()

    def query(self, category: CategoryEnum, point: LocationSample, radius_meters: float) -> Optional[Place]:
        params = {
            "lat": point.lat,
            "lng": point.lng,
            "category": category.value,
            "radius": radius_meters,
        }
        try:
            response = self.client.get(f"{self.base_url}/nearby", params=params)
            response.raise_for_status()
            rows = response.json()
        except httpx.TimeoutException as e:
            raise ProximityTimeoutError(f"Proximity query for {category.value} timed out") from e
        except httpx.HTTPStatusError as e:
            raise ProximityUnavailableError(
                f"Proximity service returned {e.response.status_code}"
            ) from e
        except (httpx.RequestError, ValueError) as e:
            raise ProximityUnavailableError(f"Proximity service error: {e}") from e

        if not isinstance(rows, list):
            raise ProximityUnavailableError(
                f"Proximity service returned {type(rows).__name__}, expected a list"
            )
        if not rows:
            return None
        try:
            name = rows[0]["name"]
        except (KeyError, TypeError, IndexError) as e:
            raise ProximityUnavailableError(f"Malformed proximity row: {rows[0]!r}") from e
        return Place(name=name, category=category)


def get_proximity_index(db: Session) -> ProximityIndex:
    """Build the proximity index selected by PROXIMITY_BACKEND."""
    backend = settings.PROXIMITY_BACKEND.lower()
    if backend == "http":
        return HttpProximityIndex(settings.PROXIMITY_API_URL, timeout=settings.PROXIMITY_TIMEOUT_SECONDS)
    if backend == "database":
        return DatabaseProximityIndex(db)
    raise ValueError(f"Unknown PROXIMITY_BACKEND: {settings.PROXIMITY_BACKEND!r}")
