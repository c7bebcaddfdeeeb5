# app/services/makeup_service.py - Makeup session requests
from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.orm import Session

from app.core.database import run_in_transaction
from app.core.errors import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from app.models.makeup_request import MAKEUP_STATUSES, OPEN_MAKEUP_STATUSES, MakeupRequest
from app.models.registration import SeminarRegistration
from app.models.seminar import SeminarSession

logger = logging.getLogger(__name__)

REVIEW_ACTIONS = ("approve", "deny", "cancel")


class MakeupService:
    """
    Learners ask to attend a makeup for a missed session; an operator
    approves or denies. The check-in that uses the allowance completes the
    request (see AttendanceService.check_in).
    """

    def __init__(self, db: Session):
        self.db = db

    def _get_session_for(self, session_id: int, seminar_id: int) -> SeminarSession:
        session = (
            self.db.query(SeminarSession)
            .filter(SeminarSession.id == session_id)
            .first()
        )
        if not session:
            raise NotFoundError("Session not found")
        if session.seminar_id != seminar_id:
            raise ValidationError("This session is for a different seminar")
        return session

    def get_request(self, request_id: int) -> MakeupRequest:
        request = (
            self.db.query(MakeupRequest).filter(MakeupRequest.id == request_id).first()
        )
        if not request:
            raise NotFoundError("Makeup request not found")
        return request

    def request_makeup(
        self,
        registration_id: int,
        missed_session_id: int,
        requested_session_id: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> MakeupRequest:
        registration = (
            self.db.query(SeminarRegistration)
            .filter(SeminarRegistration.id == registration_id)
            .first()
        )
        if not registration:
            raise NotFoundError("Registration not found")
        if registration.status != "active":
            raise InvalidStateError(
                f"Registration is {registration.status}, cannot request a makeup"
            )
        if registration.makeup_used:
            raise PolicyError("Makeup session has already been used for this registration")

        self._get_session_for(missed_session_id, registration.seminar_id)
        if requested_session_id is not None:
            self._get_session_for(requested_session_id, registration.seminar_id)

        open_request = (
            self.db.query(MakeupRequest.id)
            .filter(
                MakeupRequest.registration_id == registration_id,
                MakeupRequest.status.in_(OPEN_MAKEUP_STATUSES),
            )
            .first()
        )
        if open_request:
            raise DuplicateError("A makeup request is already open for this registration")

        def work() -> MakeupRequest:
            request = MakeupRequest(
                registration_id=registration.id,
                user_id=registration.user_id,
                seminar_id=registration.seminar_id,
                missed_session_id=missed_session_id,
                requested_session_id=requested_session_id,
                reason=reason,
                status="pending",
            )
            self.db.add(request)
            self.db.flush()
            return request

        request = run_in_transaction(self.db, work)
        logger.info(
            f"Makeup request {request.id} created for registration {registration_id}"
        )
        return request

    def review(
        self,
        request_id: int,
        action: str,
        operator_id: Optional[int] = None,
        notes: Optional[str] = None,
        denial_reason: Optional[str] = None,
        requested_session_id: Optional[int] = None,
    ) -> MakeupRequest:
        if action not in REVIEW_ACTIONS:
            raise ValidationError(f"Invalid action: {action}. Use approve, deny or cancel")

        request = self.get_request(request_id)

        if action in ("approve", "deny") and request.status != "pending":
            raise InvalidStateError(f"Makeup request is {request.status}, cannot {action}")
        if action == "cancel" and request.status not in OPEN_MAKEUP_STATUSES:
            raise InvalidStateError(f"Makeup request is {request.status}, cannot cancel")

        if action == "approve" and requested_session_id is not None:
            self._get_session_for(requested_session_id, request.seminar_id)

        def work() -> MakeupRequest:
            if action == "approve":
                request.status = "approved"
                if requested_session_id is not None:
                    request.requested_session_id = requested_session_id
            elif action == "deny":
                request.status = "denied"
                request.denial_reason = denial_reason
            else:
                request.status = "cancelled"

            if action != "cancel":
                request.reviewed_by = operator_id
                request.reviewed_at = datetime.utcnow()
            if notes:
                request.notes = notes
            self.db.flush()
            return request

        run_in_transaction(self.db, work)
        logger.info(f"Makeup request {request_id} {request.status} by {operator_id}")
        return request

    def list_requests(
        self, seminar_id: Optional[int] = None, status: Optional[str] = None
    ) -> List[MakeupRequest]:
        query = self.db.query(MakeupRequest)
        if seminar_id is not None:
            query = query.filter(MakeupRequest.seminar_id == seminar_id)
        if status:
            if status not in MAKEUP_STATUSES:
                raise ValidationError(f"Invalid makeup status: {status}")
            query = query.filter(MakeupRequest.status == status)
        return query.order_by(MakeupRequest.created_at.desc(), MakeupRequest.id.desc()).all()
