# app/models/occupant.py
"""
Occupant table: one row per visitor/contractor sign-in episode.
Created ON_SITE by a sign-in, moved exactly once to OFF_SITE by a sign-out.
A returning visitor gets a new row; rows are never moved back on site.
"""

from enum import Enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean
from app.database import Base


class OccupantKind(str, Enum):
    VISITOR = "visitor"
    CONTRACTOR = "contractor"


class OccupantState(str, Enum):
    ON_SITE = "on_site"
    OFF_SITE = "off_site"


class Occupant(Base):
    __tablename__ = "occupants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    kind = Column(String(20), nullable=False, index=True)         # visitor | contractor
    state = Column(String(20), nullable=False, index=True)        # on_site | off_site
    full_name = Column(String(255), nullable=False)
    phone_number = Column(String(50), nullable=False)
    email = Column(String(255))
    company_name = Column(String(255))
    purpose_of_visit = Column(Text, nullable=False)
    car_registration = Column(String(50))
    visiting_person = Column(String(255), nullable=False, index=True)
    document_acknowledged = Column(Boolean, default=False, nullable=False)
    document_acknowledged_at = Column(DateTime)
    entered_at = Column(DateTime, nullable=False, index=True)
    exited_at = Column(DateTime)                                  # set iff state = off_site
    updated_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<Occupant {self.id} kind={self.kind} state={self.state}>"
