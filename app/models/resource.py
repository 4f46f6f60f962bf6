# app/models/resource.py
"""
Resource (fleet vehicle) table.
Holds the single occupancy slot of a vehicle: its state, the odometer as last
recorded, and a reference to the open checkout while the vehicle is in use.
"""

from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class ResourceState(str, Enum):
    AVAILABLE = "available"
    IN_USE = "in_use"
    MAINTENANCE = "maintenance"


class Resource(Base):
    __tablename__ = "resources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    registration = Column(String(50), unique=True, nullable=False, index=True)
    state = Column(String(20), nullable=False, index=True)   # available | in_use | maintenance
    odometer = Column(Integer, default=0, nullable=False)    # never decreases
    # Open checkouts.id; present iff state = in_use. UNIQUE so one checkout can only
    # ever be the active one for a single vehicle.
    active_checkout_id = Column(Integer, unique=True)
    make = Column(String(100))
    model = Column(String(100))
    year = Column(Integer)
    notes = Column(Text)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Resource {self.registration} state={self.state} odometer={self.odometer}>"
