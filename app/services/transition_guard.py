# app/services/transition_guard.py
"""
Transition Guard: per-entity pessimistic locking for ledger transitions.

Every transition locks exactly one entity and then re-reads it, so two
requests against the same vehicle (or the same sign-in) run one after the
other while unrelated entities proceed in parallel.

  - PostgreSQL / MySQL / Oracle: SELECT ... FOR UPDATE on the entity row.
    nowait=False, so a competing request waits for the holder's commit or
    rollback instead of failing.
  - Anything else (SQLite): an advisory row in entity_locks keyed by the
    entity id is inserted first. A second transaction inserting the same key
    blocks until the first one finishes. The row is deleted again before
    commit, and a rollback discards it.

The lock lives exactly as long as the caller's transaction; nothing here
commits or rolls back.

Usage:
    with lock_resource(db, "ABC123") as vehicle:
        if vehicle is None:
            ...
        vehicle.state = ResourceState.IN_USE
    db.commit()
"""

from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.orm import Session

from app.database import supports_row_locks
from app.models.entity_lock import EntityLock
from app.models.occupant import Occupant
from app.models.resource import Resource
from app.utils.logger import get_logger

logger = get_logger(__name__)


def resource_lock_key(registration: str) -> str:
    return f"resource:{registration}"


def occupant_lock_key(occupant_id: int) -> str:
    return f"occupant:{occupant_id}"


@contextmanager
def guarded(db: Session, model, column, value, lock_key: str):
    """
    Lock one entity for the rest of the transaction and yield a fresh read of it.

    Yields None when no row matches; the lock (advisory or gap-free FOR UPDATE
    on nothing) is still held so the caller may insert under it.
    """
    advisory = not supports_row_locks(db)
    if advisory:
        db.add(EntityLock(lock_key=lock_key, acquired_at=datetime.utcnow()))
        db.flush()   # Blocks here while another transaction holds the same key
    logger.debug(f"Lock acquired: {lock_key} ({'advisory' if advisory else 'row'})")

    # populate_existing: never trust an instance loaded before the lock was granted
    query = db.query(model).filter(column == value).populate_existing()
    if not advisory:
        query = query.with_for_update(nowait=False)
    entity = query.first()

    yield entity

    if advisory:
        db.query(EntityLock).filter(EntityLock.lock_key == lock_key).delete(
            synchronize_session=False
        )


def lock_resource(db: Session, registration: str):
    """Lock a vehicle by registration (its unique identifier)."""
    return guarded(db, Resource, Resource.registration, registration,
                   resource_lock_key(registration))


def lock_occupant(db: Session, occupant_id: int):
    """Lock a sign-in record by id."""
    return guarded(db, Occupant, Occupant.id, occupant_id, occupant_lock_key(occupant_id))
