# app/routers/health.py
"""
System health check endpoint.
Returns status of backend + ledger database.
"""

from fastapi import APIRouter, Request
from datetime import datetime

router = APIRouter()


@router.get("/health", summary="System health check")
def health_check(request: Request):
    result = {
        "status": "ok",
        "timestamp": datetime.utcnow().isoformat(),
        "backend": "ok",
        "database": "unknown",
    }

    try:
        request.app.state.store.ping()
        result["database"] = "ok"
    except Exception as e:
        result["database"] = f"error: {type(e).__name__}"
        result["status"] = "degraded"

    return result
