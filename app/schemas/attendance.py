# app/schemas/attendance.py
from pydantic import BaseModel, Field, ConfigDict, model_validator
from datetime import datetime
from typing import Optional


class CheckInRequest(BaseModel):
    """Front-desk scan: the session plus the attendee's QR code or registration id"""

    session_id: int = Field(..., description="Session being attended")
    qr_code: Optional[str] = Field(None, max_length=100, description="Scanned check-in code")
    registration_id: Optional[int] = Field(None, description="Manual lookup alternative to the QR code")
    is_makeup: bool = Field(default=False, description="Consume the makeup allowance")
    notes: Optional[str] = None

    @model_validator(mode="after")
    def require_registration_reference(self):
        if not self.qr_code and not self.registration_id:
            raise ValueError("Either qr_code or registration_id is required")
        return self


class CheckInResponse(BaseModel):
    success: bool = True
    message: str
    attendance_id: int
    registration_id: int
    session_id: int
    attendee_name: Optional[str] = None
    is_makeup: bool
    credits_awarded: float
    sessions_completed: int
    sessions_remaining: int
    registration_status: str
    checked_in_at: datetime


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    registration_id: int
    session_id: int
    user_id: int
    seminar_id: int
    is_makeup: bool
    credits_awarded: float
    checked_in_at: datetime
    checked_in_by: Optional[int] = None
    notes: Optional[str] = None


class RevertedAttendance(BaseModel):
    id: int
    registration_id: int
    session_id: int
    user_id: int
    seminar_id: int
    is_makeup: bool
    credits_awarded: float
    checked_in_at: datetime


class UndoCheckInResponse(BaseModel):
    success: bool = True
    reverted_attendance: RevertedAttendance
    ledger_entry_removed: bool
    sessions_completed: int
    sessions_remaining: int
    registration_status: str
