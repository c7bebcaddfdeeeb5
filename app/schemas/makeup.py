# app/schemas/makeup.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional


class MakeupRequestCreate(BaseModel):
    registration_id: int
    missed_session_id: int
    requested_session_id: Optional[int] = None
    reason: Optional[str] = Field(None, max_length=2000)


class MakeupReview(BaseModel):
    """Operator decision on a makeup request"""

    action: str = Field(..., description="approve, deny or cancel")
    notes: Optional[str] = None
    denial_reason: Optional[str] = None
    requested_session_id: Optional[int] = Field(
        None, description="Session the makeup is approved for"
    )


class MakeupRequestResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_id: int
    user_id: int
    seminar_id: int
    missed_session_id: int
    requested_session_id: Optional[int] = None
    reason: Optional[str] = None
    notes: Optional[str] = None
    status: str
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    denial_reason: Optional[str] = None
    attendance_id: Optional[int] = None
    created_at: datetime
