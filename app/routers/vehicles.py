# app/routers/vehicles.py
"""Fleet vehicle endpoints: registry, checkout / check-in, damage reports."""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from app.models.resource import ResourceState
from app.routers.deps import get_db, get_lifecycle, rejection_response
from app.schemas.damage_report import DamageReportRequest
from app.schemas.resource import (
    CheckInRequest,
    CheckoutOut,
    CheckoutRequest,
    MaintenanceUpdate,
    ResourceCreate,
    ResourceOut,
    ResourceStatusOut,
)
from app.services import vehicle_service
from app.services.lifecycle_service import LifecycleService

router = APIRouter()


@router.get("/vehicles", response_model=list[ResourceOut], summary="List vehicles")
def list_vehicles(state: Optional[ResourceState] = None, db: Session = Depends(get_db)):
    return vehicle_service.list_vehicles(db, state.value if state else None)


@router.post("/vehicles", status_code=201, summary="Register a new vehicle")
def register_vehicle(body: ResourceCreate, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.register_resource(body)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "registered", "data": result.snapshot}


@router.post("/vehicles/checkout", status_code=201, summary="Check a vehicle out")
def checkout_vehicle(body: CheckoutRequest, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.checkout(body)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "checked_out", "data": result.snapshot}


@router.post("/vehicles/checkin", status_code=201, summary="Check a vehicle back in")
def checkin_vehicle(body: CheckInRequest, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.check_in(body)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "checked_in", "data": result.snapshot}


@router.post("/vehicles/damage", status_code=201, summary="Report damage found at check-in")
def report_damage(body: DamageReportRequest, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.report_damage(body)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "reported", "data": result.snapshot}


@router.get("/vehicles/{registration}", response_model=ResourceStatusOut, summary="Vehicle status")
def get_vehicle(registration: str, db: Session = Depends(get_db)):
    status = vehicle_service.vehicle_status(db, registration)
    if not status:
        raise HTTPException(status_code=404, detail="Vehicle not found")
    active = status["active_checkout"]
    return ResourceStatusOut(
        vehicle=ResourceOut.model_validate(status["vehicle"]),
        is_available=status["is_available"],
        active_checkout=CheckoutOut.model_validate(active) if active else None,
    )


@router.put("/vehicles/{registration}/maintenance", summary="Flag / clear maintenance")
def set_maintenance(registration: str, body: MaintenanceUpdate,
                    lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.set_maintenance(registration, body.under_maintenance)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": result.snapshot.state.value, "data": result.snapshot}


@router.delete("/vehicles/{registration}", summary="Remove a vehicle (admin)")
def remove_vehicle(registration: str, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.remove_resource(registration)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "removed", "data": result.snapshot}
