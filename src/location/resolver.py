"""
Ranking-origin resolution with a fixed fallback chain.

1. the user's saved location, when it carries valid coordinates;
2. the device position from a :class:`PositionProvider`, bounded by a timeout;
3. the configured default coordinate.

``LocationResolver.resolve`` always returns a :class:`ResolvedLocation` and
never raises for a position failure.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Tuple

from geopy.exc import GeocoderServiceError, GeocoderTimedOut

from src.utils.geocoding import geocode_address
from src.utils.validation import validate_coordinates

logger = logging.getLogger(__name__)

DEFAULT_COORDINATES = (28.4595, 77.0266)

SOURCE_SAVED = "saved"
SOURCE_DEVICE = "device"
SOURCE_DEFAULT = "default"


class PositionErrorReason(Enum):
    PERMISSION_DENIED = "permission-denied"
    POSITION_UNAVAILABLE = "position-unavailable"
    TIMEOUT = "timeout"
    UNSUPPORTED = "unsupported"


class PositionError(Exception):
    """A position request failed for ``reason``."""

    def __init__(self, reason: PositionErrorReason, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


@dataclass(frozen=True)
class PositionOptions:
    high_accuracy: bool = True
    timeout_ms: int = 10000
    max_age_ms: int = 300000


@dataclass(frozen=True)
class SavedLocation:
    """A user's stored location preference."""

    city: str = ""
    area: str = ""
    pincode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        is_valid, _ = validate_coordinates(self.latitude, self.longitude)
        return (self.latitude, self.longitude) if is_valid else None

    @property
    def label(self) -> str:
        return ", ".join(part for part in (self.area, self.city) if part)


@dataclass(frozen=True)
class ResolvedLocation:
    latitude: float
    longitude: float
    source: str

    @property
    def coordinates(self) -> Tuple[float, float]:
        return self.latitude, self.longitude


class PositionProvider:
    """Location-permission collaborator."""

    async def request_position(self, options: PositionOptions) -> Tuple[float, float]:
        raise NotImplementedError


class StaticPositionProvider(PositionProvider):
    """Returns a fixed coordinate or raises a fixed failure, optionally after a delay."""

    def __init__(
        self,
        coordinates: Optional[Tuple[float, float]] = None,
        error: Optional[PositionErrorReason] = None,
        delay: float = 0.0,
    ):
        self.coordinates = coordinates
        self.error = error
        self.delay = delay
        self.requests = []

    async def request_position(self, options: PositionOptions) -> Tuple[float, float]:
        self.requests.append(options)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise PositionError(self.error)
        if self.coordinates is None:
            raise PositionError(PositionErrorReason.POSITION_UNAVAILABLE)
        return self.coordinates


class UnsupportedPositionProvider(PositionProvider):
    async def request_position(self, options: PositionOptions) -> Tuple[float, float]:
        raise PositionError(PositionErrorReason.UNSUPPORTED, "position requests are not supported here")


class GeocodedAddressProvider(PositionProvider):
    """Derives the position from an address the user typed.

    A fix younger than ``max_age_ms`` is reused instead of geocoding again.
    """

    def __init__(self, address: str, geocode: Callable[[str], Optional[Tuple[float, float]]] = geocode_address):
        self.address = address
        self._geocode = geocode
        self._last: Optional[Tuple[Tuple[float, float], float]] = None

    async def request_position(self, options: PositionOptions) -> Tuple[float, float]:
        if self._last is not None:
            coordinates, fixed_at = self._last
            if (time.monotonic() - fixed_at) * 1000 <= options.max_age_ms:
                return coordinates

        if not self.address or not self.address.strip():
            raise PositionError(PositionErrorReason.POSITION_UNAVAILABLE, "no address entered")

        try:
            coordinates = await asyncio.to_thread(self._geocode, self.address)
        except GeocoderTimedOut as e:
            raise PositionError(PositionErrorReason.TIMEOUT, str(e)) from e
        except GeocoderServiceError as e:
            raise PositionError(PositionErrorReason.POSITION_UNAVAILABLE, str(e)) from e

        if coordinates is None:
            raise PositionError(PositionErrorReason.POSITION_UNAVAILABLE, f"no match for '{self.address}'")
        self._last = (coordinates, time.monotonic())
        return coordinates


class LocationResolver:
    """Resolves the ranking origin; every path ends in a coordinate."""

    def __init__(
        self,
        provider: Optional[PositionProvider] = None,
        *,
        default: Tuple[float, float] = DEFAULT_COORDINATES,
        options: PositionOptions = PositionOptions(),
        on_device_location: Optional[Callable[[ResolvedLocation], None]] = None,
    ):
        self.provider = provider or UnsupportedPositionProvider()
        self.default = default
        self.options = options
        self.on_device_location = on_device_location
        self.last_source: Optional[str] = None

    @classmethod
    def from_config(cls, provider: Optional[PositionProvider], config: dict, **kwargs) -> "LocationResolver":
        options = PositionOptions(
            high_accuracy=bool(config["high_accuracy"]),
            timeout_ms=int(config["discovery_timeout_ms"]),
            max_age_ms=int(config["discovery_max_age_ms"]),
        )
        default = (float(config["default_latitude"]), float(config["default_longitude"]))
        return cls(provider, default=default, options=options, **kwargs)

    def from_saved(self, saved: Optional[SavedLocation]) -> Optional[ResolvedLocation]:
        """Use a saved location immediately when it has coordinates."""
        if saved is None or saved.coordinates is None:
            return None
        lat, lng = saved.coordinates
        return ResolvedLocation(lat, lng, SOURCE_SAVED)

    def fallback(self) -> ResolvedLocation:
        return ResolvedLocation(self.default[0], self.default[1], SOURCE_DEFAULT)

    async def resolve(self, saved: Optional[SavedLocation] = None) -> ResolvedLocation:
        resolved = self.from_saved(saved)
        if resolved is not None:
            logger.info(f"Using saved user location {resolved.coordinates}")
            return self._done(resolved)

        try:
            lat, lng = await asyncio.wait_for(
                self.provider.request_position(self.options), timeout=self.options.timeout_ms / 1000
            )
        except asyncio.TimeoutError:
            logger.warning(f"Position request timed out after {self.options.timeout_ms} ms; using fallback location")
            return self._done(self.fallback())
        except PositionError as e:
            logger.warning(f"Position request failed ({e.reason.value}); using fallback location")
            return self._done(self.fallback())
        except Exception as e:
            logger.error(f"Unexpected position failure: {type(e).__name__}: {e}; using fallback location")
            return self._done(self.fallback())

        is_valid, message = validate_coordinates(lat, lng)
        if not is_valid:
            logger.warning(f"Device position rejected ({message}); using fallback location")
            return self._done(self.fallback())

        resolved = ResolvedLocation(float(lat), float(lng), SOURCE_DEVICE)
        logger.info(f"Device location captured {resolved.coordinates}")
        if self.on_device_location is not None:
            try:
                self.on_device_location(resolved)
            except Exception:
                logger.exception("Saving the device location failed")
        return self._done(resolved)

    def _done(self, resolved: ResolvedLocation) -> ResolvedLocation:
        self.last_source = resolved.source
        return resolved
