"""Provider record types and their storage/backend encodings.

Records travel in two shapes: the camelCase JSON written to the sync channels
and the snake_case rows returned by the hosted backend. Both decode into the
same immutable :class:`ProviderRecord`.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

import pandas as pd

from src.utils.validation import validate_coordinates

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
PROVIDER_STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

CATEGORY_ICONS = {
    "tuition": "📚",
    "music": "🎵",
    "dance": "💃",
    "sports": "⚽",
    "coding": "💻",
    "art": "🎨",
    "daycare": "🏠",
    "camps": "🏕️",
}
CATEGORY_NAMES = {
    "tuition": "Tuitions",
    "music": "Music",
    "dance": "Dance",
    "sports": "Sports",
    "coding": "Coding",
    "art": "Art & Craft",
    "daycare": "Daycare",
    "camps": "Summer Camps",
}
CATEGORIES = tuple(CATEGORY_ICONS)


@dataclass(frozen=True)
class ProviderLocation:
    city: str = ""
    area: str = ""
    pincode: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    online_only: bool = False

    @property
    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.latitude is None or self.longitude is None:
            return None
        return self.latitude, self.longitude

    @property
    def address(self) -> str:
        return ", ".join(part for part in (self.area, self.city) if part)


@dataclass(frozen=True)
class ProviderRecord:
    id: str
    business_name: str = ""
    owner_name: str = ""
    email: str = ""
    phone: str = ""
    whatsapp: Optional[str] = None
    website: Optional[str] = None
    description: str = ""
    categories: Tuple[str, ...] = ()
    location: ProviderLocation = field(default_factory=ProviderLocation)
    status: str = STATUS_PENDING
    is_published: bool = False
    created_at: str = ""

    @property
    def is_eligible(self) -> bool:
        """Only approved, published providers may appear in the directory."""
        return self.status == STATUS_APPROVED and self.is_published

    def with_status(self, status: str) -> "ProviderRecord":
        """Copy with ``status``; approval publishes, any other status unpublishes."""
        return replace(self, status=status, is_published=status == STATUS_APPROVED)


def created_at_ms(record: ProviderRecord) -> float:
    """Creation time in epoch milliseconds; unparseable values sort oldest."""
    if not record.created_at:
        return float("-inf")
    ts = pd.to_datetime(record.created_at, errors="coerce", utc=True)
    if pd.isna(ts):
        return float("-inf")
    return ts.value / 1_000_000


def _optional_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:
        return None
    return number


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _coordinates(lat: Any, lng: Any) -> Tuple[Optional[float], Optional[float]]:
    lat_f = _optional_float(lat)
    lng_f = _optional_float(lng)
    if lat_f is None or lng_f is None:
        return None, None
    is_valid, message = validate_coordinates(lat_f, lng_f)
    if not is_valid:
        logger.debug(f"Dropping coordinates ({lat}, {lng}): {message}")
        return None, None
    return lat_f, lng_f


def _categories(values: Any) -> Tuple[str, ...]:
    if not values:
        return ()
    if isinstance(values, str):
        values = values.split(",")
    seen = []
    for value in values:
        text = str(value).strip()
        if text and text not in seen:
            seen.append(text)
    return tuple(seen)


def record_from_storage(payload: Mapping[str, Any]) -> Optional[ProviderRecord]:
    """Decode one camelCase channel entry; entries without an id are dropped."""
    if not isinstance(payload, Mapping):
        return None
    provider_id = _optional_str(payload.get("id"))
    if provider_id is None:
        return None

    nested = payload.get("location") if isinstance(payload.get("location"), Mapping) else {}
    coords = nested.get("coordinates") if isinstance(nested.get("coordinates"), Mapping) else {}
    lat, lng = _coordinates(
        payload.get("latitude", coords.get("lat")),
        payload.get("longitude", coords.get("lng")),
    )

    location = ProviderLocation(
        city=str(payload.get("city", nested.get("city", "")) or ""),
        area=str(payload.get("area", nested.get("area", "")) or ""),
        pincode=_optional_str(payload.get("pincode", nested.get("pincode"))),
        latitude=lat,
        longitude=lng,
        online_only=bool(payload.get("onlineOnly", nested.get("onlineOnly", False))),
    )
    status = payload.get("status", STATUS_PENDING)
    return ProviderRecord(
        id=provider_id,
        business_name=str(payload.get("businessName", payload.get("name", "")) or ""),
        owner_name=str(payload.get("ownerName", "") or ""),
        email=str(payload.get("email", "") or ""),
        phone=str(payload.get("phone", "") or ""),
        whatsapp=_optional_str(payload.get("whatsapp")),
        website=_optional_str(payload.get("website")),
        description=str(payload.get("description", "") or ""),
        categories=_categories(payload.get("categories")),
        location=location,
        status=status if status in PROVIDER_STATUSES else STATUS_PENDING,
        is_published=bool(payload.get("isPublished", False)),
        created_at=str(payload.get("createdAt", "") or ""),
    )


def record_to_storage(record: ProviderRecord) -> Dict[str, Any]:
    return {
        "id": record.id,
        "businessName": record.business_name,
        "ownerName": record.owner_name,
        "email": record.email,
        "phone": record.phone,
        "whatsapp": record.whatsapp,
        "website": record.website,
        "description": record.description,
        "city": record.location.city,
        "area": record.location.area,
        "pincode": record.location.pincode,
        "latitude": record.location.latitude,
        "longitude": record.location.longitude,
        "onlineOnly": record.location.online_only,
        "categories": list(record.categories),
        "status": record.status,
        "isPublished": record.is_published,
        "createdAt": record.created_at,
    }


def records_from_storage(entries: Iterable[Any]) -> List[ProviderRecord]:
    records = []
    for entry in entries:
        record = record_from_storage(entry)
        if record is not None:
            records.append(record)
    return records


def record_from_row(row: Mapping[str, Any]) -> Optional[ProviderRecord]:
    """Decode one backend row including its joined ``provider_services``."""
    provider_id = _optional_str(row.get("id"))
    if provider_id is None:
        return None

    services = row.get("provider_services") or []
    categories = _categories(s.get("category") for s in services if isinstance(s, Mapping))
    lat, lng = _coordinates(row.get("latitude"), row.get("longitude"))
    city = str(row.get("city") or "")
    status = row.get("status", STATUS_PENDING)

    return ProviderRecord(
        id=provider_id,
        business_name=str(row.get("business_name") or ""),
        owner_name=str(row.get("owner_name") or ""),
        email=str(row.get("email") or ""),
        phone=str(row.get("phone") or ""),
        whatsapp=_optional_str(row.get("whatsapp")),
        website=_optional_str(row.get("website")),
        description=str(row.get("description") or f"Professional services in {city}"),
        categories=categories,
        location=ProviderLocation(
            city=city,
            area=str(row.get("area") or ""),
            pincode=_optional_str(row.get("pincode")),
            latitude=lat,
            longitude=lng,
        ),
        status=status if status in PROVIDER_STATUSES else STATUS_PENDING,
        is_published=bool(row.get("is_published", False)),
        created_at=str(row.get("created_at") or ""),
    )


def records_to_frame(records: Iterable[ProviderRecord]) -> pd.DataFrame:
    """Flatten records into the DataFrame shape used by ranking."""
    rows = [
        {
            "id": r.id,
            "name": r.business_name,
            "description": r.description,
            "categories": r.categories,
            "latitude": r.location.latitude,
            "longitude": r.location.longitude,
            "online_only": r.location.online_only,
            "record": r,
        }
        for r in records
    ]
    columns = ["id", "name", "description", "categories", "latitude", "longitude", "online_only", "record"]
    return pd.DataFrame(rows, columns=columns)


def status_counts(records: Iterable[ProviderRecord]) -> Dict[str, int]:
    """Per-status totals for the admin review header."""
    counts = {status: 0 for status in PROVIDER_STATUSES}
    total = 0
    for record in records:
        total += 1
        if record.status in counts:
            counts[record.status] += 1
    counts["total"] = total
    return counts
