# tests/conftest.py
"""Shared fixtures: a file-backed SQLite ledger per test, and the service around it."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import pytest
from app.database import LedgerStore
from app.schemas.resource import ResourceCreate
from app.services.invariants import LedgerLimits
from app.services.lifecycle_service import LifecycleService


@pytest.fixture
def store(tmp_path):
    # File-backed so each thread gets its own connection to the same database
    ledger = LedgerStore(f"sqlite:///{tmp_path / 'ledger.db'}").open()
    ledger.create_tables()
    yield ledger
    ledger.close()


@pytest.fixture
def lifecycle(store):
    return LifecycleService(store, LedgerLimits(max_trip_distance=1000, max_odometer=999_999))


@pytest.fixture
def vehicle(lifecycle):
    """ABC123, available, odometer 50,000."""
    result = lifecycle.register_resource(ResourceCreate(registration="ABC123", odometer=50000))
    assert result.accepted
    return result.snapshot
