# app/services/certificate_service.py - Certificate issuing and delivery
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import run_in_transaction
from app.core.errors import DuplicateError, NotFoundError, StorageError, ValidationError
from app.models.certificate import Certificate
from app.services.certificate_periods import CertificatePeriod, get_period
from app.services.collaborators import (
    DispatchResult,
    DocumentRenderer,
    NotificationDispatcher,
)
from app.utils.codes import random_base36

logger = logging.getLogger(__name__)

CODE_ATTEMPTS = 100
CODE_TOKEN_LENGTH = 6


@dataclass
class DeliveryResult:
    certificate: Certificate
    dispatch: DispatchResult


class CertificateService:
    """Creates certificate records; rendering and email are collaborators"""

    def __init__(self, db: Session):
        self.db = db

    def _allocate_code(self, window: CertificatePeriod) -> str:
        """CERT-2025H1-7QK2ZD style code, unique in the certificates table"""
        for _ in range(CODE_ATTEMPTS):
            code = f"{settings.certificate_code_prefix}-{window.marker}-{random_base36(CODE_TOKEN_LENGTH)}"
            taken = (
                self.db.query(Certificate.id)
                .filter(Certificate.certificate_code == code)
                .first()
            )
            if not taken:
                return code
        raise StorageError("Could not generate unique certificate code")

    def find_seminar_certificate(
        self, user_id: int, seminar_id: int, period: str, year: int
    ) -> Optional[Certificate]:
        return (
            self.db.query(Certificate)
            .filter(
                Certificate.user_id == user_id,
                Certificate.seminar_id == seminar_id,
                Certificate.period == period,
                Certificate.year == year,
            )
            .first()
        )

    def issue_seminar_certificate(
        self,
        user_id: int,
        seminar_id: int,
        attendee_name: str,
        credits: float,
        period: str,
        year: int,
    ) -> Certificate:
        """
        Persist the certificate for one learner, seminar and half-year.

        Raises:
            ValidationError: Bad period/year.
            DuplicateError: A certificate already exists for that key.
        """
        window = get_period(period, year)

        if self.find_seminar_certificate(user_id, seminar_id, period, year):
            raise DuplicateError("Certificate already issued for this period")

        def work() -> Certificate:
            certificate = Certificate(
                certificate_code=self._allocate_code(window),
                user_id=user_id,
                seminar_id=seminar_id,
                attendee_name=attendee_name or "Unknown",
                period=period,
                year=year,
                ce_credits=credits,
                notes=f"Seminar certificate {window.description}: {credits:g} CE credits",
            )
            self.db.add(certificate)
            self.db.flush()
            return certificate

        try:
            certificate = run_in_transaction(self.db, work)
        except IntegrityError:
            raise DuplicateError("Certificate already issued for this period")

        logger.info(
            f"Issued certificate {certificate.certificate_code} to user {user_id} "
            f"for seminar {seminar_id} ({window.description})"
        )
        return certificate

    def get_certificate(self, certificate_id: int) -> Certificate:
        certificate = (
            self.db.query(Certificate).filter(Certificate.id == certificate_id).first()
        )
        if not certificate:
            raise NotFoundError("Certificate not found")
        return certificate

    def get_by_code(self, code: str) -> Certificate:
        certificate = (
            self.db.query(Certificate)
            .filter(Certificate.certificate_code == code)
            .first()
        )
        if not certificate:
            raise NotFoundError("Certificate not found")
        return certificate

    def list_for_user(self, user_id: int) -> List[Certificate]:
        return (
            self.db.query(Certificate)
            .filter(Certificate.user_id == user_id)
            .order_by(Certificate.generated_at.desc(), Certificate.id.desc())
            .all()
        )

    def update_pdf_url(self, certificate_id: int, pdf_url: str) -> Certificate:
        certificate = self.get_certificate(certificate_id)
        certificate.pdf_url = pdf_url
        self.db.commit()
        return certificate

    def mark_sent(self, certificate_id: int) -> Certificate:
        certificate = self.get_certificate(certificate_id)
        certificate.sent_at = datetime.utcnow()
        self.db.commit()
        return certificate

    def deliver(
        self,
        certificate_id: int,
        renderer: DocumentRenderer,
        dispatcher: NotificationDispatcher,
        recipient: Optional[str] = None,
    ) -> DeliveryResult:
        """
        Render the PDF, store its URL, email it and stamp sent_at.

        ``recipient`` overrides the holder's own address.
        """
        certificate = self.get_certificate(certificate_id)
        if not recipient and certificate.user:
            recipient = certificate.user.email
        if not recipient:
            raise ValidationError("Certificate holder has no email address")

        period_label = None
        if certificate.period and certificate.year:
            period_label = get_period(certificate.period, certificate.year).description

        fields = {
            "certificate_code": certificate.certificate_code,
            "attendee_name": certificate.attendee_name,
            "seminar_title": certificate.seminar.title if certificate.seminar else None,
            "period": period_label,
            "ce_credits": certificate.ce_credits,
            "issued_at": certificate.generated_at.isoformat(),
        }

        try:
            rendered = renderer.render(fields)
        except Exception as e:
            logger.error(f"Rendering certificate {certificate.certificate_code} failed: {e}")
            raise

        self.update_pdf_url(certificate.id, rendered.url)

        dispatch = dispatcher.send(recipient, {**fields, "pdf_url": rendered.url})
        if dispatch.success:
            self.mark_sent(certificate.id)
            logger.info(
                f"Certificate {certificate.certificate_code} sent to {recipient} ({dispatch.message_id})"
            )
        else:
            logger.warning(
                f"Certificate {certificate.certificate_code} email failed: {dispatch.error}"
            )

        return DeliveryResult(certificate=certificate, dispatch=dispatch)
