"""Provider data package: records, storage channels, reconciliation and sync."""

from .backend import BackendQueryError, ProviderBackend
from .channels import (
    AddressChannel,
    ChannelWriteError,
    JsonFileChannel,
    MemoryChannel,
    SessionStateChannel,
    StorageChannel,
)
from .demo import DEMO_PROVIDERS
from .reconciliation import ReconciliationStore, decode_projection, encode_projection, merge_records
from .records import ProviderLocation, ProviderRecord, status_counts
from .signals import DATA_CHANGED, DATA_SYNCED, SignalBus
from .sync import AsyncioIntervalTimer, ManualTimer, SyncScheduler

__all__ = [
    "AddressChannel",
    "AsyncioIntervalTimer",
    "BackendQueryError",
    "ChannelWriteError",
    "DATA_CHANGED",
    "DATA_SYNCED",
    "DEMO_PROVIDERS",
    "JsonFileChannel",
    "ManualTimer",
    "MemoryChannel",
    "ProviderBackend",
    "ProviderLocation",
    "ProviderRecord",
    "ReconciliationStore",
    "SessionStateChannel",
    "SignalBus",
    "StorageChannel",
    "SyncScheduler",
    "decode_projection",
    "encode_projection",
    "merge_records",
    "status_counts",
]
