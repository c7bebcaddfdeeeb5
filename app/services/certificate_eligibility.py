# app/services/certificate_eligibility.py - Bi-annual seminar certificate batch
"""
Scans seminar attendance for a half-year window and issues the certificates
learners have earned.

Each certificate commits on its own and the (learner, seminar, period, year)
key is unique, so a run can be stopped at any point and started again without
issuing anything twice.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import List, Optional, Tuple
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import DuplicateError
from app.models.attendance import SeminarAttendance
from app.models.certificate import Certificate
from app.models.registration import SeminarRegistration
from app.models.seminar import Seminar
from app.services.certificate_periods import (
    CertificatePeriod,
    detect_period,
    get_period,
)
from app.services.certificate_service import CertificateService
from app.services.session_catalog import SessionCatalogService

logger = logging.getLogger(__name__)

ELIGIBLE_STATUSES = ("active", "completed")


@dataclass
class EligibleRegistration:
    registration: SeminarRegistration
    credits_earned: float
    sessions_in_period: int


@dataclass
class IssuedCertificate:
    registration: SeminarRegistration
    certificate: Certificate
    credits: float


@dataclass
class SeminarScanReport:
    seminar_id: int
    seminar_title: str
    eligible_count: int = 0
    generated_count: int = 0
    errors: List[str] = field(default_factory=list)
    message: Optional[str] = None
    issued: List[IssuedCertificate] = field(default_factory=list)


@dataclass
class ScanSummary:
    period: str
    year: int
    dry_run: bool
    seminars_processed: int = 0
    total_generated: int = 0
    details: List[SeminarScanReport] = field(default_factory=list)

    @property
    def description(self) -> str:
        return get_period(self.period, self.year).description

    @property
    def has_errors(self) -> bool:
        return any(report.errors for report in self.details)


class CertificateEligibilityService:
    def __init__(self, db: Session):
        self.db = db
        self.catalog = SessionCatalogService(db)
        self.certificates = CertificateService(db)

    def resolve_period(
        self,
        period: Optional[str] = None,
        year: Optional[int] = None,
        today: Optional[date] = None,
    ) -> CertificatePeriod:
        """Explicit overrides win; otherwise the half-year containing today"""
        detected = detect_period(today)
        return get_period(period or detected.period, year or detected.year)

    def find_eligible(
        self, seminar_id: int, window: CertificatePeriod
    ) -> List[EligibleRegistration]:
        """Registrations with credits inside the window and no certificate yet"""
        registrations = (
            self.db.query(SeminarRegistration)
            .filter(
                SeminarRegistration.seminar_id == seminar_id,
                SeminarRegistration.status.in_(ELIGIBLE_STATUSES),
            )
            .order_by(SeminarRegistration.id)
            .all()
        )
        if not registrations:
            return []

        totals = {
            registration_id: (float(credits or 0.0), sessions)
            for registration_id, credits, sessions in (
                self.db.query(
                    SeminarAttendance.registration_id,
                    func.sum(SeminarAttendance.credits_awarded),
                    func.count(SeminarAttendance.id),
                )
                .filter(
                    SeminarAttendance.seminar_id == seminar_id,
                    SeminarAttendance.checked_in_at >= window.starts_at,
                    SeminarAttendance.checked_in_at < window.ends_before,
                )
                .group_by(SeminarAttendance.registration_id)
                .all()
            )
        }

        already_issued = {
            user_id
            for (user_id,) in self.db.query(Certificate.user_id).filter(
                Certificate.seminar_id == seminar_id,
                Certificate.period == window.period,
                Certificate.year == window.year,
            )
        }

        eligible = []
        for registration in registrations:
            if registration.user_id in already_issued:
                continue
            credits, sessions = totals.get(registration.id, (0.0, 0))
            if credits > 0:
                eligible.append(
                    EligibleRegistration(
                        registration=registration,
                        credits_earned=credits,
                        sessions_in_period=sessions,
                    )
                )
        return eligible

    def preview_eligible(
        self,
        seminar_id: int,
        period: Optional[str] = None,
        year: Optional[int] = None,
    ) -> Tuple[CertificatePeriod, List[EligibleRegistration]]:
        """Eligibility rows for one seminar, without issuing anything"""
        self.catalog.get_seminar(seminar_id)
        window = self.resolve_period(period, year)
        return window, self.find_eligible(seminar_id, window)

    def scan_seminar(
        self,
        seminar: Seminar,
        window: CertificatePeriod,
        dry_run: bool = False,
        registration_ids: Optional[List[int]] = None,
    ) -> SeminarScanReport:
        report = SeminarScanReport(seminar_id=seminar.id, seminar_title=seminar.title)
        eligible = self.find_eligible(seminar.id, window)
        if registration_ids:
            wanted = set(registration_ids)
            eligible = [item for item in eligible if item.registration.id in wanted]
        report.eligible_count = len(eligible)

        if not eligible:
            report.message = "No eligible registrations"
            return report

        if dry_run:
            report.generated_count = len(eligible)
            return report

        for item in eligible:
            registration = item.registration
            try:
                certificate = self.certificates.issue_seminar_certificate(
                    user_id=registration.user_id,
                    seminar_id=seminar.id,
                    attendee_name=registration.user.full_name if registration.user else "",
                    credits=item.credits_earned,
                    period=window.period,
                    year=window.year,
                )
                report.generated_count += 1
                report.issued.append(
                    IssuedCertificate(
                        registration=registration,
                        certificate=certificate,
                        credits=item.credits_earned,
                    )
                )
            except DuplicateError:
                # Issued by a concurrent run since find_eligible
                logger.info(
                    f"Certificate for registration {registration.id} already exists, skipping"
                )
            except Exception as e:
                logger.error(
                    f"Error generating certificate for registration {registration.id}: {e}"
                )
                report.errors.append(f"Registration {registration.id}: {e}")

        return report

    def generate_for_seminar(
        self,
        seminar_id: int,
        period: str,
        year: Optional[int] = None,
        registration_ids: Optional[List[int]] = None,
    ) -> Tuple[CertificatePeriod, SeminarScanReport]:
        """
        Operator-triggered issue for one seminar and half-year, optionally
        limited to some registrations. Ids that are not eligible are ignored.
        """
        seminar = self.catalog.get_seminar(seminar_id)
        window = get_period(period, year or date.today().year)
        report = self.scan_seminar(seminar, window, registration_ids=registration_ids)
        logger.info(
            f"Generated {report.generated_count} certificates for seminar {seminar_id} "
            f"({window.description})"
        )
        return window, report

    def run(
        self,
        period: Optional[str] = None,
        year: Optional[int] = None,
        dry_run: bool = False,
        today: Optional[date] = None,
    ) -> ScanSummary:
        window = self.resolve_period(period, year, today)
        summary = ScanSummary(period=window.period, year=window.year, dry_run=dry_run)

        logger.info(
            f"Starting seminar certificate generation for {window.description}"
            f"{' (DRY RUN)' if dry_run else ''}"
        )

        for seminar in self.catalog.list_certificate_seminars():
            try:
                report = self.scan_seminar(seminar, window, dry_run=dry_run)
            except Exception as e:
                self.db.rollback()
                logger.error(f"Error processing seminar {seminar.id}: {e}")
                summary.details.append(
                    SeminarScanReport(
                        seminar_id=seminar.id,
                        seminar_title=seminar.title,
                        errors=[str(e)],
                    )
                )
                continue

            if report.eligible_count:
                summary.seminars_processed += 1
                summary.total_generated += report.generated_count
            summary.details.append(report)

        logger.info(
            f"Seminar certificate generation completed: {summary.total_generated} "
            f"certificates for {window.description}"
        )
        return summary
