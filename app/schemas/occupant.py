# app/schemas/occupant.py
from pydantic import BaseModel, ConfigDict, Field, model_validator
from datetime import datetime
from typing import Optional

from app.models.occupant import OccupantKind, OccupantState


class SignInRequest(BaseModel):
    """Kiosk sign-in payload. Identity fields are opaque to the ledger."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    kind: OccupantKind
    full_name: str = Field(min_length=2, max_length=255)
    phone_number: str = Field(min_length=5, max_length=50)
    email: Optional[str] = Field(default=None, max_length=255, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    company_name: Optional[str] = Field(default=None, max_length=255)
    purpose_of_visit: str = Field(min_length=3)
    car_registration: Optional[str] = Field(default=None, max_length=50)
    visiting_person: str = Field(min_length=2, max_length=255)
    document_acknowledged: bool = False
    document_acknowledged_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _contractor_needs_company(self):
        if self.kind == OccupantKind.CONTRACTOR and (not self.company_name or len(self.company_name) < 2):
            raise ValueError("company_name is required for contractors")
        return self


class OccupantOut(BaseModel):
    id: int
    kind: OccupantKind
    state: OccupantState
    full_name: str
    phone_number: str
    email: Optional[str]
    company_name: Optional[str]
    purpose_of_visit: str
    car_registration: Optional[str]
    visiting_person: str
    document_acknowledged: bool
    document_acknowledged_at: Optional[datetime]
    entered_at: datetime
    exited_at: Optional[datetime]
    updated_at: datetime

    class Config:
        from_attributes = True


class ActiveOccupantOut(OccupantOut):
    hours_on_site: float


class OccupantPage(BaseModel):
    data: list[OccupantOut]
    total: int
    limit: int
    offset: int
    has_more: bool
