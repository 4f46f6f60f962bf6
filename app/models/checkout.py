# app/models/checkout.py
"""
Checkout table: opened when a vehicle goes AVAILABLE → IN_USE.
Immutable once written; closed by exactly one row in checkins.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean
from app.database import Base


class Checkout(Base):
    __tablename__ = "checkouts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    resource_id = Column(Integer, nullable=False, index=True)   # resources.id
    registration = Column(String(50), nullable=False)
    operator = Column(String(255), nullable=False)               # driver name
    company_name = Column(String(255))
    starting_odometer = Column(Integer, nullable=False)
    terms_acknowledged = Column(Boolean, default=False, nullable=False)
    terms_acknowledged_at = Column(DateTime)
    signature = Column(Text)
    opened_at = Column(DateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<Checkout {self.id} reg={self.registration} start={self.starting_odometer}>"
