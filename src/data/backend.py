"""Client for the hosted backend's provider tables (PostgREST-style REST API)."""

import asyncio
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

import requests

from .records import STATUS_APPROVED, ProviderRecord, record_from_row

logger = logging.getLogger(__name__)
_SESSION = requests.Session()

PROVIDER_SELECT = "*,provider_services(category)"


class BackendQueryError(RuntimeError):
    """Raised when a provider query or mutation fails."""


class ProviderBackend:
    """Query layer for published providers and admin status changes.

    Blocking HTTP calls run in a worker thread so the event loop is never held.
    """

    def __init__(self, base_url: str, anon_key: str, timeout: float = 10):
        self.base_url = base_url.rstrip("/")
        self.anon_key = anon_key
        self.timeout = timeout

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "ProviderBackend":
        return cls(config["url"], config["anon_key"], timeout=config.get("request_timeout", 10))

    def _headers(self) -> Dict[str, str]:
        return {
            "apikey": self.anon_key,
            "Authorization": f"Bearer {self.anon_key}",
            "Accept": "application/json",
        }

    def _providers_url(self) -> str:
        return f"{self.base_url}/rest/v1/providers"

    def _get_providers(self, params: Dict[str, str], description: str) -> List[ProviderRecord]:
        try:
            response = _SESSION.get(self._providers_url(), params=params, headers=self._headers(), timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Provider query failed: {e}")
            raise BackendQueryError(f"provider query failed: {e}") from e

        if not isinstance(payload, list):
            raise BackendQueryError(f"unexpected provider payload: {type(payload).__name__}")

        records = [r for r in (record_from_row(row) for row in payload if isinstance(row, dict)) if r is not None]
        logger.info(f"Fetched {len(records)} {description}")
        return records

    def query_published_providers(
        self, category: Optional[str] = None, city: Optional[str] = None
    ) -> List[ProviderRecord]:
        params = {
            "select": PROVIDER_SELECT,
            "is_published": "eq.true",
            "status": f"eq.{STATUS_APPROVED}",
            "order": "created_at.desc",
        }
        if category:
            params["select"] = "*,provider_services!inner(category)"
            params["provider_services.category"] = f"eq.{category}"
        if city:
            params["city"] = f"eq.{city}"
        return self._get_providers(params, "published providers")

    def query_all_providers(self) -> List[ProviderRecord]:
        """Every provider regardless of status, newest first, for admin review."""
        return self._get_providers({"select": PROVIDER_SELECT, "order": "created_at.desc"}, "providers for review")

    def create_provider(self, record: ProviderRecord) -> ProviderRecord:
        """Insert ``record`` and its service categories; returns the stored row."""
        row = {
            "id": record.id,
            "business_name": record.business_name,
            "owner_name": record.owner_name,
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
            "status": record.status,
            "is_published": record.status == STATUS_APPROVED,
        }
        headers = dict(self._headers(), Prefer="return=representation")
        try:
            response = _SESSION.post(self._providers_url(), json=row, headers=headers, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
            if record.categories:
                services = [{"provider_id": record.id, "category": c} for c in record.categories]
                response = _SESSION.post(
                    f"{self.base_url}/rest/v1/provider_services",
                    json=services,
                    headers=self._headers(),
                    timeout=self.timeout,
                )
                response.raise_for_status()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Provider insert failed for {record.id}: {e}")
            raise BackendQueryError(f"provider insert failed: {e}") from e

        stored = record_from_row(payload[0]) if isinstance(payload, list) and payload else None
        logger.info(f"Provider created in backend: {record.id}")
        if stored is None:
            return record
        return replace(stored, categories=record.categories)

    def set_provider_status(self, provider_id: str, status: str) -> None:
        """Change a provider's status; approval publishes, anything else unpublishes."""
        body = {"status": status, "is_published": status == STATUS_APPROVED}
        headers = dict(self._headers(), Prefer="return=representation")
        try:
            response = _SESSION.patch(
                self._providers_url(),
                params={"id": f"eq.{provider_id}"},
                json=body,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            updated = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Status update failed for provider {provider_id}: {e}")
            raise BackendQueryError(f"status update failed: {e}") from e
        if not updated:
            raise BackendQueryError(f"no provider with id {provider_id}")
        logger.info(f"Provider status updated in backend: {provider_id} -> {status}")

    async def fetch_published_providers(
        self, category: Optional[str] = None, city: Optional[str] = None
    ) -> List[ProviderRecord]:
        return await asyncio.to_thread(self.query_published_providers, category, city)

    async def update_provider_status(self, provider_id: str, status: str) -> None:
        await asyncio.to_thread(self.set_provider_status, provider_id, status)

    async def fetch_all_providers(self) -> List[ProviderRecord]:
        return await asyncio.to_thread(self.query_all_providers)

    async def submit_provider(self, record: ProviderRecord) -> ProviderRecord:
        return await asyncio.to_thread(self.create_provider, record)
