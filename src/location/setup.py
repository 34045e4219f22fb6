"""Location setup: detect the user's location or let them pick a city and area."""
import asyncio
import logging
from typing import Callable, Dict, List, Optional, Tuple

from src.utils.geocoding import geocode_address_with_cache, reverse_geocode

from .resolver import DEFAULT_COORDINATES, PositionError, PositionOptions, PositionProvider, SavedLocation

logger = logging.getLogger(__name__)

SUPPORTED_CITIES = [
    "Delhi",
    "Mumbai",
    "Bangalore",
    "Hyderabad",
    "Chennai",
    "Kolkata",
    "Pune",
    "Gurgaon",
    "Noida",
    "Ahmedabad",
    "Jaipur",
    "Lucknow",
]

CITY_AREAS = {
    "Gurgaon": ["Sector 15", "Sector 22", "Phase 2", "DLF City", "Cyber City", "Golf Course Road"],
    "Delhi": ["Connaught Place", "Karol Bagh", "Lajpat Nagar", "Saket", "Dwarka", "Rohini"],
    "Mumbai": ["Bandra", "Andheri", "Powai", "Thane", "Navi Mumbai", "Borivali"],
}


class LocationSetupError(Exception):
    """Automatic detection failed; the user should pick a location manually."""


def filter_cities(search_term: str) -> List[str]:
    term = (search_term or "").strip().lower()
    return [city for city in SUPPORTED_CITIES if term in city.lower()]


def areas_for_city(city: str) -> List[str]:
    return list(CITY_AREAS.get(city, []))


async def detect_location(
    provider: PositionProvider,
    options: PositionOptions,
    reverse: Callable[[float, float], Optional[Dict[str, str]]] = reverse_geocode,
) -> SavedLocation:
    """Ask ``provider`` for a position and name it via reverse geocoding.

    Raises:
        LocationSetupError: if no position could be obtained
    """
    try:
        lat, lng = await asyncio.wait_for(provider.request_position(options), timeout=options.timeout_ms / 1000)
    except asyncio.TimeoutError as e:
        raise LocationSetupError("Unable to detect location. Please select manually.") from e
    except PositionError as e:
        raise LocationSetupError(f"Unable to detect location ({e.reason.value}). Please select manually.") from e

    place = await asyncio.to_thread(reverse, lat, lng)
    if not place:
        logger.info(f"No place name found for ({lat}, {lng}); keeping coordinates only")
        place = {}
    return SavedLocation(
        city=place.get("city", ""),
        area=place.get("area", ""),
        pincode=place.get("pincode") or None,
        latitude=lat,
        longitude=lng,
    )


def manual_location(
    city: str,
    area: str,
    pincode: Optional[str] = None,
    geocode: Callable[[str], Optional[Tuple[float, float]]] = geocode_address_with_cache,
) -> SavedLocation:
    """Build a saved location from a manual city/area pick.

    Coordinates come from geocoding "area, city"; when that fails the default
    coordinate is used.
    """
    if not city or not area:
        raise ValueError("Please select both city and area")

    coordinates = geocode(f"{area}, {city}, India")
    if coordinates is None:
        logger.info(f"Could not geocode {area}, {city}; using default coordinates")
        coordinates = DEFAULT_COORDINATES
    return SavedLocation(city=city, area=area, pincode=pincode, latitude=coordinates[0], longitude=coordinates[1])
