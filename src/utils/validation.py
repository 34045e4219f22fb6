"""Validation utilities for coordinates, postal codes and phone numbers.

Small, self-contained helpers used across the application and tests.
"""

import re
from typing import Any, Tuple


def validate_coordinates(lat: Any, lon: Any) -> Tuple[bool, str]:
    """
    Validate latitude and longitude coordinates.

    Args:
        lat: Latitude value
        lon: Longitude value

    Returns:
        Tuple of (is_valid, error_message)
    """
    if isinstance(lat, bool) or isinstance(lon, bool):
        return False, "Coordinates must be numeric"
    if not isinstance(lat, (int, float)) or not isinstance(lon, (int, float)):
        return False, "Coordinates must be numeric"

    if lat != lat or lon != lon:
        return False, "Coordinates must not be NaN"

    if not (-90 <= lat <= 90):
        return False, "Latitude must be between -90 and 90"

    if not (-180 <= lon <= 180):
        return False, "Longitude must be between -180 and 180"

    return True, "Valid coordinates"


def validate_pincode(pincode: str) -> Tuple[bool, str]:
    """
    Validate an Indian postal (PIN) code.

    Args:
        pincode: Six digit PIN code, optional

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not pincode or not pincode.strip():
        return True, "PIN code is optional"

    if not re.match(r"^[1-9]\d{5}$", pincode.strip()):
        return False, "PIN code must be 6 digits and cannot start with 0"
    return True, "Valid PIN code"


def validate_phone_number(phone: str) -> Tuple[bool, str]:
    """
    Validate phone number format.

    Args:
        phone: Phone number string

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not phone or not phone.strip():
        return True, "Phone number is optional"

    # Remove common formatting
    cleaned = re.sub(r"[^\d]", "", phone)

    if len(cleaned) == 10:
        return True, "Valid phone number"
    elif len(cleaned) == 12 and cleaned.startswith("91"):
        return True, "Valid phone number"
    else:
        return False, "Phone number must be 10 digits or 12 digits starting with 91"
