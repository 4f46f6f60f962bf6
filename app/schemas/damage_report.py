# app/schemas/damage_report.py
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime
from typing import Optional


class DamageReportRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    checkin_id: int
    description: Optional[str] = None
    photos: list[str] = Field(default_factory=list)
    reporter: str = Field(min_length=2, max_length=255)

    @field_validator("photos")
    @classmethod
    def _no_commas_in_paths(cls, value: list[str]) -> list[str]:
        # Stored comma-separated
        if any("," in path for path in value):
            raise ValueError("photo paths must not contain commas")
        return value


class DamageReportOut(BaseModel):
    id: int
    checkin_id: int
    description: Optional[str]
    photos: Optional[str]
    reporter: str
    status: str
    reported_at: datetime

    class Config:
        from_attributes = True
