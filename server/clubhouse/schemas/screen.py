"""Pydantic schemas for screen pairing endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ScreenPairResponse(BaseModel):
    """Returned to a kiosk when a new pairing code is issued."""

    pairing_code: str
    expires_at: datetime


class ScreenStatusResponse(BaseModel):
    """Returned when a kiosk polls its pairing code.

    ``status`` is one of ``pending``, ``activated`` or ``expired``.
    """

    activated: bool
    status: str


class ScreenActivateRequest(BaseModel):
    pairing_code: str = Field(..., min_length=1, max_length=20)


class ScreenOut(BaseModel):
    """Pairing session as listed in the CMS."""

    model_config = ConfigDict(from_attributes=True)

    pairing_code: str
    status: str
    created_at: datetime
    expires_at: datetime
    activated_at: datetime | None
    activated_by_user_id: int | None
    last_seen_at: datetime | None
