"""Utilities package for the BrightRoots provider directory.

Re-export stable helper functions from the utility modules.
"""
# This module intentionally re-exports symbols from submodules. Flake8 F401
# warnings are expected for re-exported names and are silenced locally.
# flake8: noqa: F401

from .config import get_api_config, get_app_config, get_location_config, get_secret, get_sync_config
from .geocoding import geocode_address, geocode_address_with_cache, handle_geocoding_error, reverse_geocode
from .geomath import calculate_distances, distance_km, round_distance
from .validation import validate_coordinates, validate_phone_number, validate_pincode

__all__ = [
    # Configuration
    "get_api_config",
    "get_app_config",
    "get_location_config",
    "get_secret",
    "get_sync_config",
    # Geocoding
    "geocode_address",
    "geocode_address_with_cache",
    "handle_geocoding_error",
    "reverse_geocode",
    # Distance
    "calculate_distances",
    "distance_km",
    "round_distance",
    # Validation
    "validate_coordinates",
    "validate_phone_number",
    "validate_pincode",
]
