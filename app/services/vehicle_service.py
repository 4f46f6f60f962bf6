# app/services/vehicle_service.py
"""
Vehicle lookup helpers for the vehicles router.
Read-only; writes go through LifecycleService.
"""

from typing import Optional
from sqlalchemy.orm import Session
from app.models.checkout import Checkout
from app.models.resource import Resource, ResourceState
from app.schemas.resource import normalise_registration


def lookup_vehicle(db: Session, registration: str) -> Optional[Resource]:
    """Find a vehicle by registration. Returns None if not found."""
    return db.query(Resource).filter(
        Resource.registration == normalise_registration(registration)
    ).first()


def list_vehicles(db: Session, state: str = None) -> list[Resource]:
    q = db.query(Resource)
    if state:
        q = q.filter(Resource.state == state)
    return q.order_by(Resource.registration.asc()).all()


def vehicle_status(db: Session, registration: str) -> Optional[dict]:
    """Vehicle row, availability flag and the open checkout (if any)."""
    vehicle = lookup_vehicle(db, registration)
    if not vehicle:
        return None
    active = None
    if vehicle.active_checkout_id is not None:
        active = db.query(Checkout).filter(Checkout.id == vehicle.active_checkout_id).first()
    return {
        "vehicle": vehicle,
        "is_available": vehicle.state == ResourceState.AVAILABLE and active is None,
        "active_checkout": active,
    }
