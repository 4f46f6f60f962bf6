# app/schemas/resource.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional

from app.models.resource import ResourceState


def normalise_registration(registration: str) -> str:
    """Plates are stored upper-case with no spaces: "ab12 cde" -> "AB12CDE"."""
    return registration.replace(" ", "").upper()


class _RegistrationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    registration: str = Field(min_length=1, max_length=50)

    @field_validator("registration")
    @classmethod
    def _normalise_registration(cls, value: str) -> str:
        return normalise_registration(value)


class ResourceCreate(_RegistrationRequest):
    state: ResourceState = ResourceState.AVAILABLE
    odometer: int = 0
    make: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    year: Optional[int] = None
    notes: Optional[str] = None


class CheckoutRequest(_RegistrationRequest):
    operator: str = Field(min_length=2, max_length=255)
    company_name: Optional[str] = Field(default=None, max_length=255)
    starting_odometer: int          # range is checked by the ledger, not here
    terms_acknowledged: bool = False
    signature: Optional[str] = None


class CheckInRequest(_RegistrationRequest):
    ending_odometer: int
    operator: str = Field(min_length=2, max_length=255)


class MaintenanceUpdate(BaseModel):
    under_maintenance: bool


class ResourceOut(BaseModel):
    id: int
    registration: str
    state: ResourceState
    odometer: int
    active_checkout_id: Optional[int]
    make: Optional[str]
    model: Optional[str]
    year: Optional[int]
    notes: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CheckoutOut(BaseModel):
    id: int
    resource_id: int
    registration: str
    operator: str
    company_name: Optional[str]
    starting_odometer: int
    terms_acknowledged: bool
    terms_acknowledged_at: Optional[datetime]
    opened_at: datetime

    class Config:
        from_attributes = True


class CheckInOut(BaseModel):
    id: int
    checkout_id: int
    resource_id: int
    registration: str
    ending_odometer: int
    operator: str
    closed_at: datetime

    class Config:
        from_attributes = True


class CheckoutReceipt(BaseModel):
    resource: ResourceOut
    checkout: CheckoutOut


class CheckInReceipt(BaseModel):
    resource: ResourceOut
    checkin: CheckInOut
    distance: int


class ResourceStatusOut(BaseModel):
    vehicle: ResourceOut
    is_available: bool
    active_checkout: Optional[CheckoutOut] = None
