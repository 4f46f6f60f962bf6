# app/models/entity_lock.py
"""
Advisory lock table for databases without SELECT ... FOR UPDATE (SQLite).
A row exists only inside the transaction that holds the lock; it is deleted
before that transaction commits and discarded by a rollback.
"""

from sqlalchemy import Column, String, DateTime
from app.database import Base


class EntityLock(Base):
    __tablename__ = "entity_locks"

    lock_key = Column(String(100), primary_key=True)   # e.g. resource:ABC123, occupant:42
    acquired_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<EntityLock {self.lock_key}>"
