"""Tests for ranking-origin resolution and its fallback chain."""
from unittest.mock import MagicMock

import pytest
from geopy.exc import GeocoderServiceError, GeocoderTimedOut

from src.location.resolver import (
    DEFAULT_COORDINATES,
    SOURCE_DEFAULT,
    SOURCE_DEVICE,
    SOURCE_SAVED,
    GeocodedAddressProvider,
    LocationResolver,
    PositionError,
    PositionErrorReason,
    PositionOptions,
    SavedLocation,
    StaticPositionProvider,
    UnsupportedPositionProvider,
)

FAST = PositionOptions(timeout_ms=50)


class TestResolve:
    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_default(self):
        """No saved location and a position request that never answers in time."""
        provider = StaticPositionProvider(coordinates=(12.97, 77.59), delay=1.0)
        resolver = LocationResolver(provider, options=FAST)

        resolved = await resolver.resolve()

        assert resolved.coordinates == DEFAULT_COORDINATES
        assert resolved.source == SOURCE_DEFAULT
        assert resolver.last_source == SOURCE_DEFAULT

    @pytest.mark.asyncio
    async def test_saved_location_wins_without_asking_device(self):
        provider = StaticPositionProvider(coordinates=(12.97, 77.59))
        resolver = LocationResolver(provider)

        resolved = await resolver.resolve(SavedLocation(city="Delhi", latitude=28.61, longitude=77.21))

        assert resolved.coordinates == (28.61, 77.21)
        assert resolved.source == SOURCE_SAVED
        assert provider.requests == []

    @pytest.mark.asyncio
    async def test_saved_location_without_coordinates_asks_device(self):
        provider = StaticPositionProvider(coordinates=(12.97, 77.59))
        resolver = LocationResolver(provider)

        resolved = await resolver.resolve(SavedLocation(city="Bangalore"))

        assert resolved.source == SOURCE_DEVICE
        assert len(provider.requests) == 1

    @pytest.mark.asyncio
    async def test_device_position(self):
        provider = StaticPositionProvider(coordinates=(19.076, 72.8777))
        resolver = LocationResolver(provider, options=FAST)

        resolved = await resolver.resolve()

        assert resolved.coordinates == (19.076, 72.8777)
        assert resolved.source == SOURCE_DEVICE
        assert provider.requests == [FAST]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reason",
        [PositionErrorReason.PERMISSION_DENIED, PositionErrorReason.POSITION_UNAVAILABLE, PositionErrorReason.TIMEOUT],
    )
    async def test_position_errors_fall_back(self, reason):
        resolver = LocationResolver(StaticPositionProvider(error=reason))
        resolved = await resolver.resolve()
        assert resolved.source == SOURCE_DEFAULT

    @pytest.mark.asyncio
    async def test_unsupported_environment(self):
        resolved = await LocationResolver(UnsupportedPositionProvider()).resolve()
        assert resolved.coordinates == DEFAULT_COORDINATES

    @pytest.mark.asyncio
    async def test_no_provider_means_unsupported(self):
        resolved = await LocationResolver().resolve()
        assert resolved.source == SOURCE_DEFAULT

    @pytest.mark.asyncio
    async def test_invalid_device_coordinates_are_rejected(self):
        resolver = LocationResolver(StaticPositionProvider(coordinates=(123.0, 77.0)))
        resolved = await resolver.resolve()
        assert resolved.source == SOURCE_DEFAULT

    @pytest.mark.asyncio
    async def test_unexpected_provider_failure_falls_back(self):
        provider = MagicMock()
        provider.request_position.side_effect = RuntimeError("sensor exploded")

        resolved = await LocationResolver(provider).resolve()

        assert resolved.source == SOURCE_DEFAULT

    @pytest.mark.asyncio
    async def test_custom_default(self):
        resolver = LocationResolver(UnsupportedPositionProvider(), default=(19.0, 72.8))
        resolved = await resolver.resolve()
        assert resolved.coordinates == (19.0, 72.8)


class TestDeviceLocationCallback:
    @pytest.mark.asyncio
    async def test_called_with_device_fix(self):
        remembered = []
        provider = StaticPositionProvider(coordinates=(19.0, 72.8))
        resolver = LocationResolver(provider, on_device_location=remembered.append)

        resolved = await resolver.resolve()

        assert remembered == [resolved]

    @pytest.mark.asyncio
    async def test_not_called_for_fallback(self):
        remembered = []
        resolver = LocationResolver(UnsupportedPositionProvider(), on_device_location=remembered.append)

        await resolver.resolve()

        assert remembered == []

    @pytest.mark.asyncio
    async def test_callback_failure_does_not_break_resolution(self):
        def broken(location):
            raise OSError("disk full")

        resolver = LocationResolver(StaticPositionProvider(coordinates=(19.0, 72.8)), on_device_location=broken)

        resolved = await resolver.resolve()

        assert resolved.source == SOURCE_DEVICE


def test_from_config():
    config = {
        "default_latitude": 19.076,
        "default_longitude": 72.8777,
        "discovery_timeout_ms": 2500,
        "discovery_max_age_ms": 1000,
        "high_accuracy": False,
    }

    resolver = LocationResolver.from_config(None, config)

    assert resolver.default == (19.076, 72.8777)
    assert resolver.options == PositionOptions(high_accuracy=False, timeout_ms=2500, max_age_ms=1000)


class TestGeocodedAddressProvider:
    @pytest.mark.asyncio
    async def test_geocodes_address(self):
        geocode = MagicMock(return_value=(28.5, 77.1))
        provider = GeocodedAddressProvider("Cyber Hub, Gurgaon", geocode=geocode)

        assert await provider.request_position(PositionOptions()) == (28.5, 77.1)
        geocode.assert_called_once_with("Cyber Hub, Gurgaon")

    @pytest.mark.asyncio
    async def test_recent_fix_is_reused(self):
        geocode = MagicMock(return_value=(28.5, 77.1))
        provider = GeocodedAddressProvider("Cyber Hub", geocode=geocode)

        await provider.request_position(PositionOptions())
        await provider.request_position(PositionOptions())

        assert geocode.call_count == 1

    @pytest.mark.asyncio
    async def test_zero_max_age_geocodes_again(self):
        geocode = MagicMock(return_value=(28.5, 77.1))
        provider = GeocodedAddressProvider("Cyber Hub", geocode=geocode)

        await provider.request_position(PositionOptions(max_age_ms=-1))
        await provider.request_position(PositionOptions(max_age_ms=-1))

        assert geocode.call_count == 2

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error,reason",
        [
            (GeocoderTimedOut("slow"), PositionErrorReason.TIMEOUT),
            (GeocoderServiceError("down"), PositionErrorReason.POSITION_UNAVAILABLE),
        ],
    )
    async def test_geocoder_errors_map_to_reasons(self, error, reason):
        provider = GeocodedAddressProvider("Somewhere", geocode=MagicMock(side_effect=error))

        with pytest.raises(PositionError) as exc_info:
            await provider.request_position(PositionOptions())

        assert exc_info.value.reason == reason

    @pytest.mark.asyncio
    async def test_no_match_is_unavailable(self):
        provider = GeocodedAddressProvider("Nowhere", geocode=MagicMock(return_value=None))

        with pytest.raises(PositionError) as exc_info:
            await provider.request_position(PositionOptions())

        assert exc_info.value.reason == PositionErrorReason.POSITION_UNAVAILABLE

    @pytest.mark.asyncio
    async def test_blank_address_is_unavailable(self):
        geocode = MagicMock()
        provider = GeocodedAddressProvider("   ", geocode=geocode)

        with pytest.raises(PositionError):
            await provider.request_position(PositionOptions())

        geocode.assert_not_called()
