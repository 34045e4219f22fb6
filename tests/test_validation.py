"""Test suite for validation utilities.

Tests verify coordinate, PIN code, and phone number validation functions.
"""
import pytest

from src.utils.validation import validate_coordinates, validate_phone_number, validate_pincode


class TestValidateCoordinates:
    """Tests for coordinate validation."""

    def test_valid_coordinates(self):
        valid, msg = validate_coordinates(28.4595, 77.0266)
        assert valid is True
        assert msg == "Valid coordinates"

    def test_boundaries_are_inclusive(self):
        assert validate_coordinates(90, 180)[0] is True
        assert validate_coordinates(-90, -180)[0] is True

    @pytest.mark.parametrize("lat,lon", [(90.1, 0), (-91, 0)])
    def test_latitude_out_of_range(self, lat, lon):
        valid, msg = validate_coordinates(lat, lon)
        assert valid is False
        assert "Latitude" in msg

    def test_longitude_out_of_range(self):
        valid, msg = validate_coordinates(0, 181)
        assert valid is False
        assert "Longitude" in msg

    @pytest.mark.parametrize("lat,lon", [("28.4", 77.0), (None, 77.0), (True, 77.0), (28.4, [77.0])])
    def test_non_numeric(self, lat, lon):
        valid, msg = validate_coordinates(lat, lon)
        assert valid is False
        assert "numeric" in msg

    def test_nan(self):
        valid, msg = validate_coordinates(float("nan"), 77.0)
        assert valid is False
        assert "NaN" in msg


class TestValidatePincode:
    def test_valid(self):
        assert validate_pincode("122001") == (True, "Valid PIN code")

    def test_optional(self):
        assert validate_pincode("")[0] is True
        assert validate_pincode("   ")[0] is True

    @pytest.mark.parametrize("pincode", ["12200", "1220011", "022001", "12A001"])
    def test_invalid(self, pincode):
        valid, msg = validate_pincode(pincode)
        assert valid is False
        assert "6 digits" in msg


class TestValidatePhoneNumber:
    """Tests for Indian phone number validation."""

    @pytest.mark.parametrize("phone", ["9876543210", "+91 98765 43210", "91-98765-43210", "(987) 654-3210"])
    def test_valid_formats(self, phone):
        valid, msg = validate_phone_number(phone)
        assert valid is True, f"{phone} should be valid"

    def test_optional(self):
        assert validate_phone_number("")[0] is True

    @pytest.mark.parametrize("phone", ["12345", "44 98765 43210", "98765432101234"])
    def test_invalid(self, phone):
        valid, msg = validate_phone_number(phone)
        assert valid is False
        assert "10 digits" in msg
