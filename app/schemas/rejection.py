# app/schemas/rejection.py
from pydantic import BaseModel
from typing import Optional


class RejectionOut(BaseModel):
    kind: str
    reason: str
    transition: str
    entity_id: Optional[str]
    current_state: Optional[str]
    detail: str
