# app/services/occupancy_service.py
"""
Read-only occupant queries for the admin console and kiosk displays.
These bypass the Transition Guard; never use a result here as the basis for
a transition without going through LifecycleService.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session
from app.models.occupant import Occupant, OccupantState
from app.utils.logger import get_logger

logger = get_logger(__name__)

MAX_PAGE_SIZE = 100


def get_occupant(db: Session, occupant_id: int) -> Optional[Occupant]:
    return db.query(Occupant).filter(Occupant.id == occupant_id).first()


def list_occupants(db: Session, state: str = None, kind: str = None, limit: int = 50, offset: int = 0):
    """Page through sign-ins, newest first. Returns (rows, total)."""
    limit = max(1, min(limit, MAX_PAGE_SIZE))
    offset = max(0, offset)
    q = db.query(Occupant)
    if state:
        q = q.filter(Occupant.state == state)
    if kind:
        q = q.filter(Occupant.kind == kind)
    total = q.count()
    rows = q.order_by(Occupant.entered_at.desc(), Occupant.id.desc()).offset(offset).limit(limit).all()
    return rows, total


def active_occupants(db: Session, now: datetime = None) -> list[dict]:
    """Everyone currently on site, with hours_on_site computed against `now`."""
    now = now or datetime.utcnow()
    rows = (
        db.query(Occupant)
        .filter(Occupant.state == OccupantState.ON_SITE.value)
        .order_by(Occupant.entered_at.desc())
        .all()
    )
    result = []
    for o in rows:
        hours = max(0.0, (now - o.entered_at).total_seconds() / 3600)
        result.append({**{c.name: getattr(o, c.name) for c in Occupant.__table__.columns},
                       "hours_on_site": round(hours, 2)})
    logger.debug(f"{len(result)} occupants on site")
    return result
