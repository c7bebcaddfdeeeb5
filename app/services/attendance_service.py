# app/services/attendance_service.py - Seminar check-in and its compensating undo
"""
Attendance state machine.

The only writers of a registration's progress (sessions_completed,
sessions_remaining, makeup_used and the active/completed status) live here:
check_in, undo_check_in and reconcile_registration. Each runs as a single
database transaction through run_in_transaction, so an attendance row, the
registration counters and the ledger entry always commit together.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import run_in_transaction
from app.core.errors import (
    CapacityError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from app.models.attendance import SeminarAttendance
from app.models.ce_ledger import SOURCE_SEMINAR_SESSION
from app.models.makeup_request import MakeupRequest
from app.models.registration import SeminarRegistration
from app.models.seminar import SeminarSession
from app.services.ce_ledger import CELedgerService

logger = logging.getLogger(__name__)

ALREADY_CHECKED_IN = "Already checked in for this session"


@dataclass
class CheckInResult:
    attendance: SeminarAttendance
    registration: SeminarRegistration
    credits_awarded: float


@dataclass
class UndoResult:
    reverted_attendance: Dict[str, Any]
    registration: SeminarRegistration
    ledger_entry_removed: bool


def _progress_snapshot(registration: SeminarRegistration) -> Dict[str, Any]:
    return {
        "sessions_completed": registration.sessions_completed,
        "sessions_remaining": registration.sessions_remaining,
        "makeup_used": registration.makeup_used,
        "status": registration.status,
    }


class AttendanceService:
    def __init__(self, db: Session):
        self.db = db
        self.ledger = CELedgerService(db)

    # ===== LOOKUPS =====

    def _get_session(self, session_id: int) -> SeminarSession:
        session = (
            self.db.query(SeminarSession)
            .filter(SeminarSession.id == session_id)
            .first()
        )
        if not session:
            raise NotFoundError("Session not found")
        return session

    def _lock_registration(
        self, registration_id: Optional[int] = None, qr_code: Optional[str] = None
    ) -> SeminarRegistration:
        """Load a registration with a row lock held until the transaction ends"""
        query = self.db.query(SeminarRegistration)
        if qr_code:
            query = query.filter(SeminarRegistration.qr_code == qr_code)
        else:
            query = query.filter(SeminarRegistration.id == registration_id)

        registration = query.with_for_update().populate_existing().first()
        if not registration:
            if qr_code:
                raise NotFoundError("Invalid QR code - registration not found")
            raise NotFoundError("Registration not found")
        return registration

    def _credits_for(self, session: SeminarSession) -> float:
        if session.credits is not None:
            return session.credits
        if session.seminar.credits_per_session is not None:
            return session.seminar.credits_per_session
        return settings.default_credits_per_session

    def _total_sessions(self, registration: SeminarRegistration) -> int:
        total = registration.seminar.total_sessions
        if total:
            return total
        return registration.sessions_completed + registration.sessions_remaining

    def get_attendance(self, attendance_id: int) -> SeminarAttendance:
        attendance = (
            self.db.query(SeminarAttendance)
            .filter(SeminarAttendance.id == attendance_id)
            .first()
        )
        if not attendance:
            raise NotFoundError("Attendance record not found")
        return attendance

    def list_for_registration(self, registration_id: int) -> List[SeminarAttendance]:
        return (
            self.db.query(SeminarAttendance)
            .filter(SeminarAttendance.registration_id == registration_id)
            .order_by(SeminarAttendance.checked_in_at)
            .all()
        )

    # ===== CHECK-IN =====

    def check_in(
        self,
        session_id: int,
        qr_code: Optional[str] = None,
        registration_id: Optional[int] = None,
        is_makeup: bool = False,
        operator_id: Optional[int] = None,
        notes: Optional[str] = None,
    ) -> CheckInResult:
        """
        Record one attendee at one session.

        Every guard is checked before anything is written; the attendance row,
        counter update and ledger credit commit as one transaction.

        Raises:
            ValidationError: No registration reference, or the session belongs
                to another seminar.
            NotFoundError: Unknown session or registration.
            InvalidStateError: Registration is not active.
            DuplicateError: Already checked in for this session.
            CapacityError: No sessions remaining.
            PolicyError: Makeup requested but already used.
        """
        if not qr_code and not registration_id:
            raise ValidationError("Either QR code or registration ID is required")

        def work() -> CheckInResult:
            session = self._get_session(session_id)
            registration = self._lock_registration(registration_id, qr_code)

            if session.seminar_id != registration.seminar_id:
                raise ValidationError("This session is for a different seminar")

            if registration.status != "active":
                raise InvalidStateError(
                    f"Registration is {registration.status}, cannot check in"
                )

            existing = (
                self.db.query(SeminarAttendance.id)
                .filter(
                    SeminarAttendance.registration_id == registration.id,
                    SeminarAttendance.session_id == session.id,
                )
                .first()
            )
            if existing:
                raise DuplicateError(ALREADY_CHECKED_IN)

            if registration.sessions_remaining <= 0:
                raise CapacityError("No sessions remaining in this registration")

            if is_makeup and registration.makeup_used:
                raise PolicyError(
                    "Makeup session has already been used for this registration"
                )

            credits = self._credits_for(session)
            checked_in_at = datetime.utcnow()

            attendance = SeminarAttendance(
                registration_id=registration.id,
                session_id=session.id,
                user_id=registration.user_id,
                seminar_id=registration.seminar_id,
                is_makeup=is_makeup,
                credits_awarded=credits,
                checked_in_at=checked_in_at,
                checked_in_by=operator_id,
                notes=notes,
            )
            self.db.add(attendance)
            self.db.flush()

            registration.sessions_completed += 1
            registration.sessions_remaining -= 1
            if registration.sessions_remaining == 0:
                registration.status = "completed"
            if is_makeup:
                registration.makeup_used = True
                self._complete_makeup_request(registration.id, session.id, attendance.id)

            self.ledger.append_entry(
                user_id=registration.user_id,
                credits=credits,
                source=SOURCE_SEMINAR_SESSION,
                transaction_type="earned",
                notes=f"Session {session.session_number} attendance",
                seminar_id=registration.seminar_id,
                session_id=session.id,
                attendance_id=attendance.id,
                awarded_at=checked_in_at,
            )
            self.db.flush()
            return CheckInResult(
                attendance=attendance,
                registration=registration,
                credits_awarded=credits,
            )

        try:
            result = run_in_transaction(self.db, work)
        except IntegrityError:
            # A concurrent scan of the same (registration, session) won the insert
            raise DuplicateError(ALREADY_CHECKED_IN)

        logger.info(
            f"Checked in registration {result.registration.id} at session {session_id}"
            f"{' (makeup)' if is_makeup else ''}: +{result.credits_awarded} credits, "
            f"{result.registration.sessions_remaining} remaining"
        )
        return result

    def _complete_makeup_request(
        self, registration_id: int, session_id: int, attendance_id: int
    ) -> None:
        request = (
            self.db.query(MakeupRequest)
            .filter(
                MakeupRequest.registration_id == registration_id,
                MakeupRequest.status == "approved",
            )
            .order_by(MakeupRequest.created_at)
            .first()
        )
        if request is None:
            return
        if request.requested_session_id not in (None, session_id):
            return
        request.status = "completed"
        request.requested_session_id = session_id
        request.attendance_id = attendance_id

    # ===== UNDO =====

    def undo_check_in(self, attendance_id: int) -> UndoResult:
        """
        Compensate a check-in: delete the attendance, step the counters back
        and remove its ledger credit.

        A ledger entry that cannot be matched is logged and left in place; the
        attendance and counter rollback still commit. Calling this again for
        the same id raises NotFoundError and changes nothing.
        """

        def work() -> UndoResult:
            attendance = self.get_attendance(attendance_id)
            registration = self._lock_registration(attendance.registration_id)
            total = self._total_sessions(registration)

            reverted = {
                "id": attendance.id,
                "registration_id": attendance.registration_id,
                "session_id": attendance.session_id,
                "user_id": attendance.user_id,
                "seminar_id": attendance.seminar_id,
                "is_makeup": attendance.is_makeup,
                "credits_awarded": attendance.credits_awarded,
                "checked_in_at": attendance.checked_in_at,
            }

            removed = self.ledger.remove_entry_for_attendance(
                attendance_id=attendance.id,
                user_id=attendance.user_id,
                source=SOURCE_SEMINAR_SESSION,
                checked_in_at=attendance.checked_in_at,
            )

            for request in (
                self.db.query(MakeupRequest)
                .filter(MakeupRequest.attendance_id == attendance.id)
                .all()
            ):
                request.status = "approved"
                request.attendance_id = None
            self.db.flush()

            was_makeup = attendance.is_makeup
            self.db.delete(attendance)
            self.db.flush()

            registration.sessions_completed = max(0, registration.sessions_completed - 1)
            registration.sessions_remaining = min(total, registration.sessions_remaining + 1)
            if registration.status == "completed" and registration.sessions_remaining > 0:
                registration.status = "active"
            if was_makeup:
                other_makeup = (
                    self.db.query(SeminarAttendance.id)
                    .filter(
                        SeminarAttendance.registration_id == registration.id,
                        SeminarAttendance.is_makeup.is_(True),
                    )
                    .first()
                )
                registration.makeup_used = other_makeup is not None
            self.db.flush()

            return UndoResult(
                reverted_attendance=reverted,
                registration=registration,
                ledger_entry_removed=removed is not None,
            )

        result = run_in_transaction(self.db, work)
        logger.info(
            f"Undid check-in {attendance_id} for registration {result.registration.id}"
            f"{'' if result.ledger_entry_removed else ' (ledger entry not found)'}"
        )
        return result

    # ===== RECONCILIATION =====

    def reconcile_registration(self, registration_id: int) -> Dict[str, Any]:
        """
        Recompute the progress counters from the attendance rows.

        Attendance is the source of truth; the counters on the registration
        are a cached projection that can drift after a partial legacy write.
        Cancelled and on-hold registrations keep their status.
        """

        def work() -> Dict[str, Any]:
            registration = self._lock_registration(registration_id)
            before = _progress_snapshot(registration)
            total = self._total_sessions(registration)

            rows = self.list_for_registration(registration.id)
            attended = len(rows)
            if attended > total:
                logger.error(
                    f"Registration {registration.id} has {attended} check-ins for {total} sessions"
                )
            completed = min(attended, total)

            registration.sessions_completed = completed
            registration.sessions_remaining = total - completed
            if any(row.is_makeup for row in rows):
                registration.makeup_used = True
            if registration.status in ("active", "completed"):
                registration.status = (
                    "completed" if registration.sessions_remaining == 0 else "active"
                )
            self.db.flush()

            after = _progress_snapshot(registration)
            return {
                "registration_id": registration.id,
                "drift_detected": before != after,
                "before": before,
                "after": after,
            }

        result = run_in_transaction(self.db, work)
        if result["drift_detected"]:
            logger.warning(
                f"Registration {registration_id} counters healed: {result['before']} -> {result['after']}"
            )
        return result
