from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any

import requests

from ..config import DEFAULT_ENGINE_CONFIG, EngineConfig
from ..suggestions.errors import InvalidInput, UpstreamError
from ..suggestions.geo import distance_km
from ..suggestions.models import Candidate, Coordinate

logger = logging.getLogger(__name__)

PLACES_NEARBY_URL = "https://maps.googleapis.com/maps/api/place/nearbysearch/json"
MAX_RADIUS_METERS = 50_000
_OK_STATUSES = {"OK", "ZERO_RESULTS"}


def _to_candidate(place: dict[str, Any], origin: Coordinate) -> Candidate | None:
    location = (place.get("geometry") or {}).get("location") or {}
    place_id = place.get("place_id") or place.get("id")
    if "lat" not in location or "lng" not in location or not place_id:
        return None

    try:
        point = Coordinate(latitude=float(location["lat"]), longitude=float(location["lng"]))
        distance = distance_km(origin, point)
    except (InvalidInput, TypeError, ValueError):
        logger.debug("Dropping place %s with unusable location %r", place_id, location)
        return None

    price_level = place.get("price_level")
    if not isinstance(price_level, int) or not 0 <= price_level <= 4:
        price_level = None

    return Candidate(
        id=str(place_id),
        name=place.get("name") or "Unnamed place",
        kind="venue",
        distance_km=distance,
        quality_score=float(place.get("rating") or 0.0),
        price_level=price_level,
        category_tags=tuple(place.get("types") or ()),
        address=place.get("vicinity"),
        raw_source=place,
    )


class PlacesVenueSource:
    """Nearby venues from the Google Places Nearby Search API."""

    name = "places"

    def __init__(self, config: EngineConfig = DEFAULT_ENGINE_CONFIG) -> None:
        self.config = config

    def _search_type(self, origin: Coordinate, radius_km: float, place_type: str) -> list[dict]:
        params = {
            "location": f"{origin.latitude},{origin.longitude}",
            "radius": min(int(radius_km * 1000), MAX_RADIUS_METERS),
            "type": place_type,
            "key": self.config.google_places_api_key,
        }
        response = requests.get(PLACES_NEARBY_URL, params=params, timeout=self.config.upstream_timeout)
        response.raise_for_status()
        data = response.json()
        if not isinstance(data, dict):
            raise UpstreamError(self.name, f"{place_type}: unexpected response body")

        status = data.get("status")
        if status not in _OK_STATUSES:
            raise UpstreamError(self.name, f"{place_type}: {status} {data.get('error_message', '')}".strip())
        return data.get("results") or []

    def _collect(self, place_type: str, future: Future, done: set[Future]) -> list[dict] | None:
        if future not in done:
            logger.warning("Places query for %s did not answer within %.1fs", place_type, self.config.upstream_timeout)
            return None
        try:
            return future.result()
        except (requests.RequestException, ValueError, UpstreamError):
            logger.warning("Places query for %s failed", place_type, exc_info=True)
            return None

    def fetch(self, origin: Coordinate, radius_km: float) -> list[Candidate]:
        """
        Query every configured place type at once and merge the results.

        Results are merged in the configured type order. A failing or slow
        type is logged and skipped; the source only fails when no key is
        configured or every type query fails. The whole lookup is bounded by
        one upstream_timeout, so it fits inside the engine's fetch deadline.
        """
        if not self.config.google_places_api_key:
            raise UpstreamError(self.name, "Google Places API key not configured")

        place_types = self.config.places_types
        if not place_types:
            return []

        pool = ThreadPoolExecutor(max_workers=len(place_types), thread_name_prefix="places")
        try:
            futures = [
                (place_type, pool.submit(self._search_type, origin, radius_km, place_type))
                for place_type in place_types
            ]
            done, _ = wait([future for _, future in futures], timeout=self.config.upstream_timeout)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        seen: set[str] = set()
        candidates: list[Candidate] = []
        failures = 0
        for place_type, future in futures:
            results = self._collect(place_type, future, done)
            if results is None:
                failures += 1
                continue

            for place in results[: self.config.places_results_per_type]:
                if not isinstance(place, dict):
                    continue
                candidate = _to_candidate(place, origin)
                if candidate is None or candidate.id in seen:
                    continue
                seen.add(candidate.id)
                candidates.append(candidate)

        if failures == len(place_types):
            raise UpstreamError(self.name, "every place type query failed")
        return candidates
