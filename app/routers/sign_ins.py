# app/routers/sign_ins.py
"""Visitor / contractor sign-in endpoints (kiosk + admin console)."""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from app.models.occupant import OccupantKind, OccupantState
from app.routers.deps import get_db, get_lifecycle, rejection_response
from app.schemas.occupant import SignInRequest, OccupantOut, ActiveOccupantOut, OccupantPage
from app.services import occupancy_service
from app.services.lifecycle_service import LifecycleService

router = APIRouter()


@router.post("/sign-ins", status_code=201, summary="Sign in a visitor or contractor")
def create_sign_in(body: SignInRequest, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.sign_in(body)
    return {"status": "signed_in", "data": result.snapshot}


@router.get("/sign-ins", response_model=OccupantPage, summary="List sign-ins, newest first")
def list_sign_ins(
    state: Optional[OccupantState] = None,
    kind: Optional[OccupantKind] = None,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
):
    rows, total = occupancy_service.list_occupants(
        db,
        state=state.value if state else None,
        kind=kind.value if kind else None,
        limit=limit,
        offset=offset,
    )
    return OccupantPage(
        data=[OccupantOut.model_validate(r) for r in rows],
        total=total,
        limit=limit,
        offset=offset,
        has_more=offset + len(rows) < total,
    )


@router.get("/sign-ins/status/active", summary="Everyone currently on site")
def list_active(db: Session = Depends(get_db)):
    rows = [ActiveOccupantOut(**r) for r in occupancy_service.active_occupants(db)]
    return {"data": rows, "count": len(rows)}


@router.get("/sign-ins/{occupant_id}", response_model=OccupantOut)
def get_sign_in(occupant_id: int, db: Session = Depends(get_db)):
    occupant = occupancy_service.get_occupant(db, occupant_id)
    if not occupant:
        raise HTTPException(status_code=404, detail="Sign-in not found")
    return occupant


@router.put("/sign-ins/{occupant_id}/sign-out", summary="Sign out a visitor")
def sign_out(occupant_id: int, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.sign_out(occupant_id)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "signed_out", "data": result.snapshot}


@router.delete("/sign-ins/{occupant_id}", summary="Delete a sign-in record (admin)")
def delete_sign_in(occupant_id: int, lifecycle: LifecycleService = Depends(get_lifecycle)):
    result = lifecycle.remove_occupant(occupant_id)
    if not result.accepted:
        return rejection_response(result.rejection)
    return {"status": "removed", "data": result.snapshot}
