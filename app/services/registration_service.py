# app/services/registration_service.py - Seminar enrollment lifecycle
from typing import Any, Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import run_in_transaction
from app.core.errors import (
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from app.models.registration import REGISTRATION_STATUSES, SeminarRegistration
from app.models.seminar import Seminar
from app.models.user import User
from app.utils.codes import generate_check_in_code

logger = logging.getLogger(__name__)

# Fields an operator may change directly; progress counters are owned by
# the attendance service
UPDATABLE_FIELDS = ("status", "notes", "makeup_used")


class RegistrationService:
    """Creates, updates and looks up seminar registrations"""

    def __init__(self, db: Session):
        self.db = db

    def create_registration(
        self, user_id: int, seminar_id: int, order_id: Optional[str] = None
    ) -> SeminarRegistration:
        """
        Enroll a learner in a seminar cycle.

        Counters start at (0, total_sessions) with the makeup allowance unused.
        """
        seminar = self.db.query(Seminar).filter(Seminar.id == seminar_id).first()
        if not seminar:
            raise NotFoundError("Seminar not found")
        if not seminar.total_sessions or seminar.total_sessions <= 0:
            raise ValidationError("Seminar has no defined number of sessions")

        user = self.db.query(User).filter(User.id == user_id).first()
        if not user:
            raise NotFoundError("User not found")

        if self.get_live_registration(user_id, seminar_id):
            raise DuplicateError("User is already registered for this seminar")

        def work():
            registration = SeminarRegistration(
                user_id=user_id,
                seminar_id=seminar_id,
                order_id=order_id,
                sessions_completed=0,
                sessions_remaining=seminar.total_sessions,
                makeup_used=False,
                status="active",
                qr_code=generate_check_in_code(),
            )
            self.db.add(registration)
            self.db.flush()
            return registration

        try:
            registration = run_in_transaction(self.db, work)
        except IntegrityError:
            raise DuplicateError("User is already registered for this seminar")

        self.db.refresh(registration)
        logger.info(
            f"Registration {registration.id} created for user {user_id} in seminar {seminar_id}"
        )
        return registration

    def get_registration(self, registration_id: int) -> SeminarRegistration:
        registration = (
            self.db.query(SeminarRegistration)
            .filter(SeminarRegistration.id == registration_id)
            .first()
        )
        if not registration:
            raise NotFoundError("Registration not found")
        return registration

    def get_by_check_in_code(self, qr_code: str) -> SeminarRegistration:
        registration = (
            self.db.query(SeminarRegistration)
            .filter(SeminarRegistration.qr_code == qr_code)
            .first()
        )
        if not registration:
            raise NotFoundError("Invalid QR code - registration not found")
        return registration

    def get_active_registration(
        self, user_id: int, seminar_id: int
    ) -> Optional[SeminarRegistration]:
        return (
            self.db.query(SeminarRegistration)
            .filter(
                SeminarRegistration.user_id == user_id,
                SeminarRegistration.seminar_id == seminar_id,
                SeminarRegistration.status == "active",
            )
            .first()
        )

    def get_live_registration(
        self, user_id: int, seminar_id: int
    ) -> Optional[SeminarRegistration]:
        """Any registration for the pair that is not cancelled"""
        return (
            self.db.query(SeminarRegistration)
            .filter(
                SeminarRegistration.user_id == user_id,
                SeminarRegistration.seminar_id == seminar_id,
                SeminarRegistration.status != "cancelled",
            )
            .first()
        )

    def list_for_user(self, user_id: int) -> List[SeminarRegistration]:
        return (
            self.db.query(SeminarRegistration)
            .filter(SeminarRegistration.user_id == user_id)
            .order_by(SeminarRegistration.created_at.desc(), SeminarRegistration.id.desc())
            .all()
        )

    def list_for_seminar(
        self, seminar_id: int, status: Optional[str] = None
    ) -> List[SeminarRegistration]:
        query = self.db.query(SeminarRegistration).filter(
            SeminarRegistration.seminar_id == seminar_id
        )
        if status:
            query = query.filter(SeminarRegistration.status == status)
        return query.order_by(SeminarRegistration.id).all()

    def update_registration(
        self, registration_id: int, changes: Dict[str, Any]
    ) -> SeminarRegistration:
        """
        Apply an operator edit restricted to UPDATABLE_FIELDS.

        Only keys present in ``changes`` are applied, so an explicit None
        clears ``notes``.
        """
        update_data = {
            field: changes[field] for field in UPDATABLE_FIELDS if field in changes
        }
        if not update_data:
            raise ValidationError("No valid fields to update")

        registration = self.get_registration(registration_id)

        if "status" in update_data:
            new_status = update_data["status"]
            if new_status not in REGISTRATION_STATUSES:
                raise ValidationError(f"Invalid registration status: {new_status}")
            if registration.status == "cancelled" and new_status != "cancelled":
                raise InvalidStateError("Cancelled registrations cannot be reopened")

        if "makeup_used" in update_data and not isinstance(update_data["makeup_used"], bool):
            raise ValidationError("makeup_used must be true or false")

        def work():
            for field, value in update_data.items():
                setattr(registration, field, value)
            self.db.flush()
            return registration

        run_in_transaction(self.db, work)
        self.db.refresh(registration)
        logger.info(f"Registration {registration_id} updated: {sorted(update_data)}")
        return registration

    def cancel_registration(self, registration_id: int) -> SeminarRegistration:
        registration = self.get_registration(registration_id)
        if registration.status == "cancelled":
            return registration

        def work():
            registration.status = "cancelled"
            self.db.flush()
            return registration

        run_in_transaction(self.db, work)
        self.db.refresh(registration)
        logger.info(f"Registration {registration_id} cancelled")
        return registration
