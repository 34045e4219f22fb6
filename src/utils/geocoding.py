"""Geocoding helpers with caching and rate limiting."""
import logging
from typing import Any, Dict, Optional, Tuple

import streamlit as st
from geopy.exc import GeocoderServiceError, GeocoderTimedOut, GeocoderUnavailable
from geopy.extra.rate_limiter import RateLimiter
from geopy.geocoders import Nominatim

from .config import get_api_config

logger = logging.getLogger(__name__)

# Cached factories, built on first use
_RATE_LIMITED_GEOCODER = None
_RATE_LIMITED_REVERSE = None


def _get_geolocator() -> Nominatim:
    config = get_api_config("geocoding")
    return Nominatim(user_agent=config["nominatim_user_agent"])


def _get_rate_limited_geocoder():
    global _RATE_LIMITED_GEOCODER
    if _RATE_LIMITED_GEOCODER is not None:
        return _RATE_LIMITED_GEOCODER

    config = get_api_config("geocoding")
    geolocator = _get_geolocator()
    rate_limited = RateLimiter(
        geolocator.geocode,
        min_delay_seconds=config["rate_limit_delay"],
        max_retries=config["max_retries"],
        swallow_exceptions=False,
    )

    def geocode_fn(q, timeout=config["request_timeout"]):
        return rate_limited(q, timeout=timeout)

    _RATE_LIMITED_GEOCODER = geocode_fn
    return _RATE_LIMITED_GEOCODER


def _get_rate_limited_reverse():
    global _RATE_LIMITED_REVERSE
    if _RATE_LIMITED_REVERSE is not None:
        return _RATE_LIMITED_REVERSE

    config = get_api_config("geocoding")
    geolocator = _get_geolocator()
    rate_limited = RateLimiter(
        geolocator.reverse,
        min_delay_seconds=config["rate_limit_delay"],
        max_retries=config["max_retries"],
        swallow_exceptions=False,
    )

    def reverse_fn(point, timeout=config["request_timeout"]):
        return rate_limited(point, timeout=timeout, exactly_one=True)

    _RATE_LIMITED_REVERSE = reverse_fn
    return _RATE_LIMITED_REVERSE


def geocode_address(address: str) -> Optional[Tuple[float, float]]:
    """Geocode ``address`` to (lat, lng) without caching.

    Returns None when nothing matches. geopy errors propagate so callers can
    tell a timeout from an unavailable service.
    """
    geocode_fn = _get_rate_limited_geocoder()
    location = geocode_fn(address)
    if location:
        return location.latitude, location.longitude
    return None


@st.cache_data(ttl=3600)
def geocode_address_with_cache(address: str) -> Optional[Tuple[float, float]]:
    try:
        return geocode_address(address)
    except (GeocoderTimedOut, GeocoderServiceError):
        logger.warning(f"Geocoding service unavailable for '{address}'")
        return None
    except Exception as e:
        logger.error(f"Error geocoding address '{address}': {e}")
        return None


def _area_from_address(address: Dict[str, Any]) -> str:
    for key in ("suburb", "neighbourhood", "quarter", "city_district", "residential", "road"):
        if address.get(key):
            return str(address[key])
    return ""


def _city_from_address(address: Dict[str, Any]) -> str:
    for key in ("city", "town", "village", "county", "state_district"):
        if address.get(key):
            return str(address[key])
    return ""


@st.cache_data(ttl=60 * 60 * 24)
def reverse_geocode(lat: float, lng: float) -> Optional[Dict[str, str]]:
    """Return ``{"city", "area", "pincode"}`` for a coordinate, or None."""
    try:
        reverse_fn = _get_rate_limited_reverse()
        location = reverse_fn((lat, lng))
    except GeocoderUnavailable:
        return None
    except (GeocoderTimedOut, GeocoderServiceError) as e:
        logger.warning(f"Reverse geocoding failed for ({lat}, {lng}): {e}")
        return None

    if not location:
        return None

    address = (location.raw or {}).get("address", {})
    city = _city_from_address(address)
    if not city:
        return None
    return {"city": city, "area": _area_from_address(address), "pincode": str(address.get("postcode", ""))}


def handle_geocoding_error(address: str, error: Exception) -> str:
    et = str(error).lower()
    if isinstance(error, GeocoderTimedOut) or "timeout" in et:
        return (
            "⏱️ **Location Timeout**: The address lookup service is taking too long. "
            "Please try again in a moment."
        )
    if "unavailable" in et or "service" in et:
        return (
            "🔌 **Service Unavailable**: The location service is temporarily unavailable. "
            "Please try again later."
        )
    if "rate" in et or "limit" in et:
        return "🚦 **Rate Limited**: Too many location requests. Please wait a moment and try again."
    return f"❌ **Location Error**: Unable to find '{address}'. (Error: {type(error).__name__})"
