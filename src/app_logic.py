"""Wiring between the Streamlit pages and the directory components.

Each browser session gets one :class:`DirectoryRuntime` kept in
``st.session_state``: its own channels, reconciliation store, sync scheduler
and ranking service. The persistent channel's file is shared
by every session, which is how admin changes reach other sessions.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, MutableMapping, Optional, Tuple

import streamlit as st

from src.data.backend import BackendQueryError, ProviderBackend
from src.data.channels import AddressChannel, JsonFileChannel, SessionStateChannel, StorageChannel
from src.data.demo import DEMO_PROVIDERS
from src.data.reconciliation import ReconciliationStore
from src.data.records import ProviderRecord
from src.data.signals import SignalBus
from src.data.sync import ManualTimer, SyncScheduler
from src.directory.ranking import DirectoryQuery, DirectoryRankingService, RankingResult
from src.location.resolver import (
    SOURCE_DEVICE,
    GeocodedAddressProvider,
    LocationResolver,
    PositionProvider,
    ResolvedLocation,
    SavedLocation,
    UnsupportedPositionProvider,
)
from src.utils.config import get_api_config, get_app_config, get_location_config, get_sync_config, is_api_enabled

logger = logging.getLogger(__name__)

__all__ = [
    "DirectoryRuntime",
    "backend_review_enabled",
    "browsing_label",
    "build_backend",
    "build_runtime",
    "build_store",
    "change_provider_status",
    "filter_by_status",
    "forget_device_location",
    "get_runtime",
    "load_directory",
    "load_review_providers",
    "load_saved_location",
    "local_providers",
    "position_provider_for",
    "providers_fingerprint",
    "register_provider",
    "resolve_location",
    "run_async",
    "save_location",
    "session_position_provider",
]

RUNTIME_KEY = "directory_runtime"
SESSION_CHANNEL_KEY = "directory_session_channel"
SAVED_LOCATION_KEY = "userLocation"
DEVICE_ADDRESS_KEY = "device_address"
POSITION_PROVIDER_KEY = "position_provider"
POSITION_ADDRESS_KEY = "position_address"
CURRENT_POSITION_LABEL = "Your current position"

STATUS_FILTER_ALL = "all"


@dataclass
class DirectoryRuntime:
    store: ReconciliationStore
    scheduler: SyncScheduler
    timer: ManualTimer
    service: DirectoryRankingService
    backend: Optional[ProviderBackend]
    demo_mode: bool


def run_async(coro):
    """Run a coroutine to completion from Streamlit's script thread."""
    return asyncio.run(coro)


def build_store(
    persistent: StorageChannel,
    session: StorageChannel,
    shared: StorageChannel,
    bus: Optional[SignalBus] = None,
    sync_config: Optional[Dict[str, Any]] = None,
) -> ReconciliationStore:
    config = sync_config or get_sync_config()
    return ReconciliationStore(
        persistent,
        session,
        shared,
        bus=bus,
        storage_key=config["storage_key"],
        shared_state_key=config["shared_state_key"],
    )


def build_backend() -> Optional[ProviderBackend]:
    """Backend client when credentials are configured, otherwise None."""
    if not is_api_enabled("backend"):
        logger.info("Backend not configured - directory runs on local provider data")
        return None
    return ProviderBackend.from_config(get_api_config("backend"))


def local_providers(store: ReconciliationStore) -> List[ProviderRecord]:
    """Reconciled providers, or the demo catalogue when nothing is stored yet."""
    providers = store.get_providers()
    if not providers:
        return list(DEMO_PROVIDERS)
    return providers


def build_runtime(
    persistent: StorageChannel,
    session: StorageChannel,
    shared: StorageChannel,
    *,
    backend: Optional[ProviderBackend] = None,
    demo_mode: bool = False,
    sync_config: Optional[Dict[str, Any]] = None,
) -> DirectoryRuntime:
    """Assemble and start the per-session components."""
    config = sync_config or get_sync_config()
    store = build_store(persistent, session, shared, sync_config=config)
    timer = ManualTimer()
    scheduler = SyncScheduler(store, timer=timer, interval_seconds=float(config["interval_seconds"]))
    scheduler.init()
    service = DirectoryRankingService(lambda: local_providers(store), backend=backend, demo_mode=demo_mode)
    return DirectoryRuntime(store, scheduler, timer, service, backend, demo_mode)


def get_runtime() -> DirectoryRuntime:
    """Return this session's runtime, creating it on first use."""
    runtime = st.session_state.get(RUNTIME_KEY)
    if runtime is not None:
        return runtime

    sync_config = get_sync_config()
    session_values = st.session_state.setdefault(SESSION_CHANNEL_KEY, {})
    runtime = build_runtime(
        JsonFileChannel(sync_config["persistent_path"]),
        SessionStateChannel(session_values, namespace="providers"),
        AddressChannel(st.query_params),
        backend=build_backend(),
        demo_mode=bool(get_app_config()["demo_mode"]),
        sync_config=sync_config,
    )
    st.session_state[RUNTIME_KEY] = runtime
    logger.info("Directory runtime created for session")
    return runtime


def load_saved_location(state: Optional[MutableMapping] = None) -> Optional[SavedLocation]:
    state = st.session_state if state is None else state
    stored = state.get(SAVED_LOCATION_KEY)
    if not isinstance(stored, dict):
        return None
    return SavedLocation(
        city=stored.get("city", ""),
        area=stored.get("area", ""),
        pincode=stored.get("pincode"),
        latitude=stored.get("latitude"),
        longitude=stored.get("longitude"),
    )


def save_location(location: SavedLocation, state: Optional[MutableMapping] = None) -> None:
    state = st.session_state if state is None else state
    state[SAVED_LOCATION_KEY] = {
        "city": location.city,
        "area": location.area,
        "pincode": location.pincode,
        "latitude": location.latitude,
        "longitude": location.longitude,
    }
    logger.info(f"Saved user location: {location.label or (location.latitude, location.longitude)}")


def forget_device_location(state: Optional[MutableMapping] = None) -> bool:
    """Drop a remembered device fix so the next resolve asks the device again.

    Locations picked or detected with a place name are kept.
    """
    state = st.session_state if state is None else state
    saved = load_saved_location(state)
    if saved is None or saved.label:
        return False
    state.pop(SAVED_LOCATION_KEY, None)
    return True


def position_provider_for(address: Optional[str]) -> PositionProvider:
    """Position source for this session: the typed device address if any."""
    if address and address.strip():
        return GeocodedAddressProvider(address.strip())
    return UnsupportedPositionProvider()


def session_position_provider(address: Optional[str], state: Optional[MutableMapping] = None) -> PositionProvider:
    """This session's position provider, rebuilt only when the typed address changes.

    A changed address also forgets a remembered device fix so the next resolve
    asks the new address instead.
    """
    state = st.session_state if state is None else state
    address = (address or "").strip()
    provider = state.get(POSITION_PROVIDER_KEY)
    previous = state.get(POSITION_ADDRESS_KEY)
    if provider is not None and previous == address:
        return provider

    provider = position_provider_for(address)
    state[POSITION_PROVIDER_KEY] = provider
    state[POSITION_ADDRESS_KEY] = address
    if previous is not None and previous != address:
        forget_device_location(state)
    return provider


def resolve_location(
    saved: Optional[SavedLocation],
    provider: PositionProvider,
    state: Optional[MutableMapping] = None,
) -> ResolvedLocation:
    """Resolve the ranking origin; a fresh device fix is remembered as the saved location."""

    def _remember(resolved: ResolvedLocation) -> None:
        save_location(SavedLocation(latitude=resolved.latitude, longitude=resolved.longitude), state)

    resolver = LocationResolver.from_config(provider, get_location_config(), on_device_location=_remember)
    return run_async(resolver.resolve(saved))


def load_directory(
    runtime: DirectoryRuntime,
    location: ResolvedLocation,
    *,
    category: Optional[str] = None,
    search_term: str = "",
    show_all: bool = False,
    saved: Optional[SavedLocation] = None,
) -> RankingResult:
    query = DirectoryQuery(
        location=location,
        category=category,
        search_term=search_term,
        show_all=show_all,
        saved_city=saved.city if saved is not None else None,
    )
    return run_async(runtime.service.rank(query))


def browsing_label(
    saved: Optional[SavedLocation], show_all: bool, location: Optional[ResolvedLocation] = None
) -> str:
    """Header text naming where the user is browsing."""
    if show_all:
        return "All Locations"
    if saved is not None and saved.label:
        return saved.label
    if (saved is not None and saved.coordinates is not None) or (
        location is not None and location.source == SOURCE_DEVICE
    ):
        return CURRENT_POSITION_LABEL
    return "All Locations"


def filter_by_status(records: Iterable[ProviderRecord], status: str) -> List[ProviderRecord]:
    if status == STATUS_FILTER_ALL:
        return list(records)
    return [r for r in records if r.status == status]


def providers_fingerprint(records: Iterable[ProviderRecord]) -> Tuple[Tuple[str, str, bool, str], ...]:
    """Order-independent summary used to detect that a sync changed anything visible."""
    return tuple(sorted((r.id, r.status, r.is_published, r.created_at) for r in records))


def backend_review_enabled(runtime: DirectoryRuntime) -> bool:
    return runtime.backend is not None and not runtime.demo_mode


def load_review_providers(runtime: DirectoryRuntime) -> Tuple[List[ProviderRecord], Optional[str]]:
    """Providers of every status for admin review, plus a warning when degraded.

    With a live backend the list comes from the backend; otherwise, or when the
    backend query fails, it is the reconciled local set.
    """
    if backend_review_enabled(runtime):
        try:
            return run_async(runtime.backend.fetch_all_providers()), None
        except BackendQueryError as e:
            logger.warning(f"Review list falling back to local providers: {e}")
            return runtime.store.get_providers(), f"Failed to load providers: {e}"
    return runtime.store.get_providers(), None


def change_provider_status(runtime: DirectoryRuntime, provider_id: str, status: str) -> None:
    """Approve or reject a provider where the review list came from.

    Raises:
        BackendQueryError: if the backend rejects the update
    """
    if backend_review_enabled(runtime):
        run_async(runtime.backend.update_provider_status(provider_id, status))
        return
    runtime.store.update_status(provider_id, status)


def register_provider(runtime: DirectoryRuntime, record: ProviderRecord) -> None:
    """Submit a new provider for review.

    Raises:
        BackendQueryError: if the backend insert fails
    """
    if backend_review_enabled(runtime):
        run_async(runtime.backend.submit_provider(record))
        return
    runtime.store.add_record(record)
