# app/routers/deps.py
"""
FastAPI dependency providers and the rejection → HTTP mapping.

The LifecycleService and LedgerStore are built once per application
(see app.main.create_app) and hung on app.state; routers reach them here.
"""

from fastapi import Request
from fastapi.responses import JSONResponse

from app.schemas.rejection import RejectionOut
from app.services.invariants import Rejection, RejectionKind
from app.services.lifecycle_service import LifecycleService

STATUS_BY_KIND = {
    RejectionKind.NOT_FOUND: 404,
    RejectionKind.CONFLICT: 409,
    RejectionKind.ALREADY_IN_STATE: 400,
    RejectionKind.OUT_OF_RANGE: 400,
    RejectionKind.IMPLAUSIBLE_DELTA: 400,
}


def get_lifecycle(request: Request) -> LifecycleService:
    return request.app.state.lifecycle


def get_db(request: Request):
    """Read-only session for display endpoints; closed after the request."""
    yield from request.app.state.store.get_db()


def rejection_response(rejection: Rejection) -> JSONResponse:
    body = RejectionOut(
        kind=rejection.kind.value,
        reason=rejection.reason,
        transition=rejection.transition.value,
        entity_id=rejection.entity_id,
        current_state=rejection.current_state,
        detail=rejection.message,
    )
    return JSONResponse(status_code=STATUS_BY_KIND[rejection.kind], content=body.model_dump())
