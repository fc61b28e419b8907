"""
Reverse geocoding utilities for DelivHub.

This module provides a thin wrapper around the `geopy` library to turn
stop coordinates into short, readable street addresses for the timeline.
It uses OpenStreetMap's Nominatim service via geopy's API, throttled to
one request per second as the service's usage policy requires. Results
are cached in memory so that re-rendering a tour does not query again.

Example usage:

    from delivhub.geocode import short_address
    label = short_address(45.7640, 4.8357)

When a lookup fails the coordinates themselves are returned.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from geopy.exc import GeopyError
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

logger = logging.getLogger(__name__)

USER_AGENT = "delivhub_app"
MIN_DELAY_SECONDS = 1.1
MAX_RETRIES = 0
SHORT_ADDRESS_LENGTH = 30
UNKNOWN_ADDRESS = "Unknown address"

_reverse: Optional[Callable[..., Any]] = None


def _get_reverse() -> Callable[..., Any]:
    """Return a singleton, rate limited Nominatim reverse lookup."""
    global _reverse
    if _reverse is None:
        geocoder = Nominatim(user_agent=USER_AGENT)
        # Lookup errors propagate to _cached_address.
        _reverse = RateLimiter(
            geocoder.reverse,
            min_delay_seconds=MIN_DELAY_SECONDS,
            max_retries=MAX_RETRIES,
            swallow_exceptions=False,
        )
    return _reverse


def format_address(raw: Optional[Dict[str, Any]]) -> str:
    """Pick the most useful short label from a Nominatim reverse response."""
    if not raw or raw.get("error"):
        return UNKNOWN_ADDRESS
    addr = raw.get("address") or {}
    if addr.get("house_number") and addr.get("road"):
        return f"{addr['house_number']} {addr['road']}"
    if addr.get("road"):
        return addr["road"]
    if addr.get("neighbourhood"):
        return addr["neighbourhood"]
    locality = addr.get("city") or addr.get("town") or addr.get("village")
    if locality:
        return locality
    display_name = raw.get("display_name") or ""
    return display_name.split(",")[0] or UNKNOWN_ADDRESS


@lru_cache(maxsize=512)
def _cached_address(lat: float, lon: float) -> str:
    reverse = _get_reverse()
    try:
        location = reverse((lat, lon), exactly_one=True, zoom=18, addressdetails=True, timeout=10)
    except GeopyError as exc:
        logger.warning("Reverse geocoding failed for (%s, %s): %s", lat, lon, exc)
        return f"{lat:.4f}, {lon:.4f}"
    if location is None:
        return UNKNOWN_ADDRESS
    return format_address(location.raw)


def reverse_geocode(latitude: float, longitude: float) -> str:
    """Readable address for a coordinate, cached on 5 decimals."""
    return _cached_address(round(latitude, 5), round(longitude, 5))


def short_address(latitude: float, longitude: float) -> str:
    """Address trimmed for display in a timeline step."""
    address = reverse_geocode(latitude, longitude)
    if len(address) > SHORT_ADDRESS_LENGTH:
        return address[: SHORT_ADDRESS_LENGTH - 3] + "..."
    return address


def clear_cache() -> None:
    _cached_address.cache_clear()
