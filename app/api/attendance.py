# app/api/attendance.py - Front-desk check-in and its undo
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
import logging

from app.core.database import get_db
from app.models.user import User
from app.schemas.attendance import (
    AttendanceResponse,
    CheckInRequest,
    CheckInResponse,
    RevertedAttendance,
    UndoCheckInResponse,
)
from app.services.attendance_service import AttendanceService
from app.services.jwt_service import get_current_operator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/seminars", tags=["Seminar Attendance"])


@router.post("/check-in", response_model=CheckInResponse)
async def check_in(
    request: CheckInRequest,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    """Record an attendee at a session from a scanned QR code or registration id"""
    service = AttendanceService(db)
    result = service.check_in(
        session_id=request.session_id,
        qr_code=request.qr_code,
        registration_id=request.registration_id,
        is_makeup=request.is_makeup,
        operator_id=operator.id,
        notes=request.notes,
    )

    registration = result.registration
    attendance = result.attendance
    attendee_name = registration.user.full_name if registration.user else None

    return CheckInResponse(
        message=f"{attendee_name or 'Attendee'} checked in"
        f"{' (makeup)' if attendance.is_makeup else ''}",
        attendance_id=attendance.id,
        registration_id=registration.id,
        session_id=attendance.session_id,
        attendee_name=attendee_name,
        is_makeup=attendance.is_makeup,
        credits_awarded=result.credits_awarded,
        sessions_completed=registration.sessions_completed,
        sessions_remaining=registration.sessions_remaining,
        registration_status=registration.status,
        checked_in_at=attendance.checked_in_at,
    )


@router.delete("/attendance/{attendance_id}", response_model=UndoCheckInResponse)
async def undo_check_in(
    attendance_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    """Reverse a mistaken check-in"""
    result = AttendanceService(db).undo_check_in(attendance_id)
    logger.info(f"Operator {operator.id} undid check-in {attendance_id}")

    registration = result.registration
    return UndoCheckInResponse(
        reverted_attendance=RevertedAttendance(**result.reverted_attendance),
        ledger_entry_removed=result.ledger_entry_removed,
        sessions_completed=registration.sessions_completed,
        sessions_remaining=registration.sessions_remaining,
        registration_status=registration.status,
    )


@router.get(
    "/registrations/{registration_id}/attendance",
    response_model=List[AttendanceResponse],
)
async def get_registration_attendance(
    registration_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return AttendanceService(db).list_for_registration(registration_id)
