"""User location resolution for the provider directory."""

from .resolver import (
    GeocodedAddressProvider,
    LocationResolver,
    PositionError,
    PositionErrorReason,
    PositionOptions,
    PositionProvider,
    ResolvedLocation,
    SavedLocation,
    StaticPositionProvider,
    UnsupportedPositionProvider,
)
from .setup import LocationSetupError, detect_location, manual_location

__all__ = [
    "GeocodedAddressProvider",
    "LocationResolver",
    "LocationSetupError",
    "PositionError",
    "PositionErrorReason",
    "PositionOptions",
    "PositionProvider",
    "ResolvedLocation",
    "SavedLocation",
    "StaticPositionProvider",
    "UnsupportedPositionProvider",
    "detect_location",
    "manual_location",
]
