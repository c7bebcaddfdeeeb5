# app/schemas/registration.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import date, datetime
from typing import Optional


class RegistrationCreate(BaseModel):
    """Enroll a learner in a seminar cycle"""

    user_id: int = Field(..., description="Learner being enrolled")
    seminar_id: int = Field(..., description="Seminar cycle")
    order_id: Optional[str] = Field(
        None, max_length=100, description="Order that paid for the registration"
    )


class RegistrationUpdate(BaseModel):
    """Operator edit; progress counters are not editable"""

    status: Optional[str] = Field(
        None, description="active, completed, cancelled or on_hold"
    )
    notes: Optional[str] = None
    makeup_used: Optional[bool] = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    seminar_id: int
    order_id: Optional[str] = None
    registration_date: Optional[date] = None
    sessions_completed: int
    sessions_remaining: int
    total_sessions: int
    progress_percentage: float
    makeup_used: bool
    status: str
    qr_code: str
    notes: Optional[str] = None
    created_at: Optional[datetime] = None


class ReconcileResponse(BaseModel):
    registration_id: int
    drift_detected: bool
    before: dict
    after: dict
