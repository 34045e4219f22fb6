"""
Provider reconciliation across the persistent, session and address channels.

Every channel may be stale, ahead or missing. ``load`` reads all three, merges
them by creation timestamp (last writer wins, ties go to the channel observed
last) and writes the merge back so each read repairs drift. ``save`` writes a
full set to every channel and announces the change.

Usage:
    store = ReconciliationStore(persistent, session, address, bus=bus)
    providers = store.load()
    store.update_status("p1", "approved")
"""

import base64
import binascii
import json
import logging
import time
from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Union

from .channels import StorageChannel
from .records import (
    ProviderRecord,
    created_at_ms,
    record_to_storage,
    records_from_storage,
)
from .signals import DATA_CHANGED, SignalBus

logger = logging.getLogger(__name__)

ReconciledSet = Dict[str, ProviderRecord]
RecordsInput = Union[Mapping[str, ProviderRecord], Iterable[ProviderRecord]]

PROJECTION_FIELDS = ("id", "businessName", "status", "createdAt")


def merge_records(
    existing: Mapping[str, ProviderRecord], incoming: Iterable[ProviderRecord], partial: bool = False
) -> ReconciledSet:
    """Merge ``incoming`` into a copy of ``existing`` by creation timestamp.

    An incoming record replaces the held one when its timestamp is greater or
    equal. With ``partial=True`` the incoming records are address projections:
    a winning projection updates only the projected fields of a held record.
    """
    merged: ReconciledSet = dict(existing)
    for record in incoming:
        held = merged.get(record.id)
        if held is None:
            merged[record.id] = record
            logger.debug(f"Added provider {record.id} ({record.business_name})")
            continue
        if created_at_ms(record) >= created_at_ms(held):
            if partial:
                record = replace(
                    held,
                    business_name=record.business_name or held.business_name,
                    status=record.status,
                    created_at=record.created_at,
                )
            merged[record.id] = record
            logger.debug(f"Updated provider {record.id} ({record.business_name})")
    return merged


def encode_projection(records: Iterable[ProviderRecord]) -> str:
    """Base64 JSON of the fields small enough to travel in the address."""
    essential = [{k: record_to_storage(r)[k] for k in PROJECTION_FIELDS} for r in records]
    return base64.b64encode(json.dumps(essential).encode("utf-8")).decode("ascii")


def decode_projection(value: str) -> List[ProviderRecord]:
    payload = json.loads(base64.b64decode(value.encode("ascii"), validate=True).decode("utf-8"))
    if not isinstance(payload, list):
        raise ValueError("address projection is not a list")
    return records_from_storage(payload)


def _as_list(records: RecordsInput) -> List[ProviderRecord]:
    if isinstance(records, Mapping):
        return list(records.values())
    return list(records)


class ReconciliationStore:
    """Maintains the reconciled provider set over three injected channels."""

    def __init__(
        self,
        persistent: StorageChannel,
        session: StorageChannel,
        shared: StorageChannel,
        *,
        bus: Optional[SignalBus] = None,
        storage_key: str = "adminProviders",
        shared_state_key: str = "sync",
    ):
        self.persistent = persistent
        self.session = session
        self.shared = shared
        self.bus = bus or SignalBus()
        self.storage_key = storage_key
        self.shared_state_key = shared_state_key
        self.current: ReconciledSet = {}

    # --- channel IO ---

    def _read_json_channel(self, channel: StorageChannel) -> List[ProviderRecord]:
        try:
            raw = channel.get(self.storage_key)
            if not raw:
                return []
            payload = json.loads(raw)
            if not isinstance(payload, list):
                raise ValueError(f"expected a JSON list, got {type(payload).__name__}")
            return records_from_storage(payload)
        except Exception as e:
            logger.warning(f"Ignoring unreadable {channel.name} channel: {e}")
            return []

    def _read_shared_channel(self) -> List[ProviderRecord]:
        try:
            raw = self.shared.get(self.shared_state_key)
            if not raw:
                return []
            return decode_projection(raw)
        except (ValueError, binascii.Error, UnicodeDecodeError) as e:
            logger.warning(f"Ignoring unreadable {self.shared.name} channel: {e}")
            return []
        except Exception as e:
            logger.warning(f"Could not read {self.shared.name} channel: {e}")
            return []

    def _write(self, channel: StorageChannel, key: str, value: str) -> bool:
        try:
            channel.set(key, value)
            return True
        except Exception as e:
            logger.warning(f"Could not write {channel.name} channel: {e}")
            return False

    # --- operations ---

    def load(self) -> ReconciledSet:
        """Merge all channels, repair the persistent and session copies, return the set."""
        persistent_records = self._read_json_channel(self.persistent)
        shared_records = self._read_shared_channel()
        session_records = self._read_json_channel(self.session)

        merged = merge_records({}, persistent_records)
        merged = merge_records(merged, shared_records, partial=True)
        merged = merge_records(merged, session_records)

        logger.debug(
            f"Reconciled {len(merged)} providers "
            f"(persistent={len(persistent_records)}, {self.shared.name}={len(shared_records)}, "
            f"session={len(session_records)})"
        )

        if merged:
            data = json.dumps([record_to_storage(r) for r in merged.values()])
            self._write(self.persistent, self.storage_key, data)
            self._write(self.session, self.storage_key, data)

        self.current = merged
        return merged

    def save(self, records: RecordsInput) -> None:
        """Write ``records`` to every channel and emit change notifications."""
        record_list = _as_list(records)
        data = json.dumps([record_to_storage(r) for r in record_list])
        now_ms = int(time.time() * 1000)

        self._write(self.persistent, self.storage_key, data)
        self._write(self.session, self.storage_key, data)
        if self._write(self.shared, self.shared_state_key, encode_projection(record_list)):
            self._write(self.shared, "t", str(now_ms))

        self.current = merge_records({}, record_list)
        logger.info(f"Saved {len(record_list)} providers to all channels")

        self.persistent.publish(self.storage_key)
        self.bus.emit(
            DATA_CHANGED,
            {"action": "dataSync", "providers": record_list, "timestamp": now_ms},
        )

    def get_providers(self) -> List[ProviderRecord]:
        return list(self.load().values())

    def update_status(self, provider_id: str, status: str) -> None:
        """Set one provider's status and save the whole set back."""
        providers = self.load()
        updated = [r.with_status(status) if r.id == provider_id else r for r in providers.values()]
        if provider_id not in providers:
            logger.warning(f"Status update for unknown provider {provider_id}")
        self.save(updated)
        logger.info(f"Provider status updated: {provider_id} -> {status}")

    def add_record(self, record: ProviderRecord) -> None:
        """Append ``record`` and save.

        The id is not checked against existing records; a duplicate is stored
        and collapsed by the recency rule on the next ``load``.
        """
        providers = list(self.load().values())
        providers.append(record)
        self.save(providers)
        logger.info(f"New provider added: {record.business_name}")
