"""Pytest configuration helpers.

Ensure the project root is on sys.path so tests can import the `src` package
when pytest is invoked from the repository root or an isolated test runner.
"""

import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Insert the repository root (parent of the tests directory) at the front
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def make_record():
    """Factory for provider records with sensible defaults."""
    from src.data.records import STATUS_APPROVED, ProviderLocation, ProviderRecord

    def _make(
        provider_id="p1",
        created_at="2024-01-01T00:00:00Z",
        status=STATUS_APPROVED,
        is_published=True,
        latitude=28.4595,
        longitude=77.0266,
        online_only=False,
        **kwargs,
    ):
        location = ProviderLocation(
            city=kwargs.pop("city", "Gurgaon"),
            area=kwargs.pop("area", "Sector 15"),
            latitude=latitude,
            longitude=longitude,
            online_only=online_only,
        )
        kwargs.setdefault("business_name", f"Provider {provider_id}")
        return ProviderRecord(
            id=provider_id,
            location=location,
            status=status,
            is_published=is_published,
            created_at=created_at,
            **kwargs,
        )

    return _make


@pytest.fixture
def channels():
    """Fresh in-memory (persistent, session, shared) channels."""
    from src.data.channels import MemoryChannel

    return MemoryChannel(), MemoryChannel(), MemoryChannel()


@pytest.fixture
def bus():
    from src.data.signals import SignalBus

    return SignalBus()


@pytest.fixture
def store(channels, bus):
    """Reconciliation store over the in-memory channels."""
    from src.data.reconciliation import ReconciliationStore

    persistent, session, shared = channels
    return ReconciliationStore(persistent, session, shared, bus=bus)
