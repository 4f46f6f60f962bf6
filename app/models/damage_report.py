# app/models/damage_report.py
"""
Damage reports attached to a check-in. Append-only; no effect on vehicle state.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text
from app.database import Base


class DamageReport(Base):
    __tablename__ = "damage_reports"

    id = Column(Integer, primary_key=True, autoincrement=True)
    checkin_id = Column(Integer, nullable=False, index=True)   # checkins.id
    description = Column(Text)
    photos = Column(Text)                                      # comma-separated image paths
    reporter = Column(String(255), nullable=False)
    status = Column(String(50), default="reported", nullable=False)
    reported_at = Column(DateTime, nullable=False)

    def __repr__(self):
        return f"<DamageReport {self.id} checkin={self.checkin_id}>"
