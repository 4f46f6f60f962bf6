# app/models/checkin.py
"""
Check-in table: closes one checkout when a vehicle goes IN_USE → AVAILABLE.
checkout_id is UNIQUE: a checkout can be closed at most once.
"""

from sqlalchemy import Column, Integer, String, DateTime
from app.database import Base


class CheckIn(Base):
    __tablename__ = "checkins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    checkout_id = Column(Integer, unique=True, nullable=False)   # checkouts.id
    resource_id = Column(Integer, nullable=False, index=True)    # resources.id
    registration = Column(String(50), nullable=False)
    ending_odometer = Column(Integer, nullable=False)
    operator = Column(String(255), nullable=False)
    closed_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<CheckIn {self.id} checkout={self.checkout_id} end={self.ending_odometer}>"
