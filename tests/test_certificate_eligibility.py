"""
Tests for the bi-annual certificate scanner.
"""

from datetime import date, datetime

import pytest

from app.core.errors import NotFoundError, ValidationError
from app.models import Certificate
from app.services.attendance_service import AttendanceService
from app.services.certificate_eligibility import CertificateEligibilityService
from app.services.certificate_service import CertificateService
from app.services.registration_service import RegistrationService


@pytest.fixture
def attend(db):
    """Check a registration in to a session and backdate the check-in."""

    def _attend(registration, session, checked_in_at):
        result = AttendanceService(db).check_in(
            session_id=session.id, registration_id=registration.id
        )
        result.attendance.checked_in_at = checked_in_at
        db.commit()
        return result.attendance

    return _attend


class TestFindEligible:
    def test_credits_inside_the_window_make_a_learner_eligible(
        self, db, registration, sessions, attend
    ):
        attend(registration, sessions[0], datetime(2025, 2, 10, 18, 0))
        attend(registration, sessions[1], datetime(2025, 6, 30, 23, 0))
        attend(registration, sessions[2], datetime(2025, 7, 1, 0, 0))

        window, rows = CertificateEligibilityService(db).preview_eligible(
            registration.seminar_id, "first_half", 2025
        )

        assert window.description == "January - June 2025"
        assert len(rows) == 1
        assert rows[0].registration.id == registration.id
        assert rows[0].credits_earned == 4.0
        assert rows[0].sessions_in_period == 2

    def test_no_attendance_in_window_is_not_eligible(self, db, registration, sessions, attend):
        attend(registration, sessions[0], datetime(2024, 12, 31, 23, 59))

        _, rows = CertificateEligibilityService(db).preview_eligible(
            registration.seminar_id, "first_half", 2025
        )
        assert rows == []

    def test_cancelled_registrations_are_skipped(self, db, registration, sessions, attend):
        attend(registration, sessions[0], datetime(2025, 3, 1))
        RegistrationService(db).cancel_registration(registration.id)

        _, rows = CertificateEligibilityService(db).preview_eligible(
            registration.seminar_id, "first_half", 2025
        )
        assert rows == []

    def test_completed_registrations_are_included(self, db, registration, sessions, attend):
        for index, session in enumerate(sessions):
            attend(registration, session, datetime(2025, 3, 1 + index))

        _, rows = CertificateEligibilityService(db).preview_eligible(
            registration.seminar_id, "first_half", 2025
        )
        assert rows[0].registration.status == "completed"
        assert rows[0].credits_earned == 8.0


class TestRun:
    def test_run_issues_one_certificate_per_eligible_learner(
        self, db, make_user, seminar, sessions, attend
    ):
        registrations = RegistrationService(db)
        for _ in range(2):
            registration = registrations.create_registration(make_user().id, seminar.id)
            attend(registration, sessions[0], datetime(2025, 4, 1))
        registrations.create_registration(make_user().id, seminar.id)

        summary = CertificateEligibilityService(db).run(period="first_half", year=2025)

        assert summary.seminars_processed == 1
        assert summary.total_generated == 2
        assert summary.details[0].eligible_count == 2
        assert summary.details[0].errors == []
        assert db.query(Certificate).count() == 2

        issued = db.query(Certificate).first()
        assert issued.period == "first_half"
        assert issued.year == 2025
        assert issued.ce_credits == 2.0

    def test_second_run_issues_nothing(self, db, registration, sessions, attend):
        attend(registration, sessions[0], datetime(2025, 4, 1))
        service = CertificateEligibilityService(db)

        first = service.run(period="first_half", year=2025)
        second = service.run(period="first_half", year=2025)

        assert first.total_generated == 1
        assert second.total_generated == 0
        assert second.details[0].message == "No eligible registrations"
        assert db.query(Certificate).count() == 1

    def test_dry_run_counts_without_writing(self, db, registration, sessions, attend):
        attend(registration, sessions[0], datetime(2025, 4, 1))

        summary = CertificateEligibilityService(db).run(
            period="first_half", year=2025, dry_run=True
        )

        assert summary.dry_run is True
        assert summary.total_generated == 1
        assert db.query(Certificate).count() == 0

    def test_period_is_detected_from_today(self, db, registration, sessions, attend):
        attend(registration, sessions[0], datetime(2025, 9, 1))

        summary = CertificateEligibilityService(db).run(today=date(2025, 12, 31))

        assert (summary.period, summary.year) == ("second_half", 2025)
        assert summary.total_generated == 1

    def test_draft_seminars_are_not_scanned(self, db, user, make_seminar, attend):
        seminar = make_seminar(status="active")
        registration = RegistrationService(db).create_registration(user.id, seminar.id)
        attend(registration, seminar.sessions[0], datetime(2025, 4, 1))
        seminar.status = "draft"
        db.commit()

        summary = CertificateEligibilityService(db).run(period="first_half", year=2025)

        assert summary.details == []
        assert summary.total_generated == 0

    def test_registration_failure_is_collected(
        self, db, registration, sessions, attend, monkeypatch
    ):
        attend(registration, sessions[0], datetime(2025, 4, 1))

        def fail(self, **kwargs):
            raise RuntimeError("pdf queue unavailable")

        monkeypatch.setattr(CertificateService, "issue_seminar_certificate", fail)
        summary = CertificateEligibilityService(db).run(period="first_half", year=2025)

        assert summary.has_errors
        assert summary.total_generated == 0
        assert summary.details[0].errors == [
            f"Registration {registration.id}: pdf queue unavailable"
        ]

    def test_failing_seminar_does_not_abort_the_run(
        self, db, make_user, make_seminar, attend, monkeypatch
    ):
        broken = make_seminar(title="Broken Seminar")
        healthy = make_seminar(title="Healthy Seminar")
        registrations = RegistrationService(db)
        for seminar in (broken, healthy):
            registration = registrations.create_registration(make_user().id, seminar.id)
            attend(registration, seminar.sessions[0], datetime(2025, 4, 1))

        original = CertificateEligibilityService.find_eligible

        def find_eligible(self, seminar_id, window):
            if seminar_id == broken.id:
                raise RuntimeError("statement timeout")
            return original(self, seminar_id, window)

        monkeypatch.setattr(CertificateEligibilityService, "find_eligible", find_eligible)
        summary = CertificateEligibilityService(db).run(period="first_half", year=2025)

        by_title = {report.seminar_title: report for report in summary.details}
        assert by_title["Broken Seminar"].errors == ["statement timeout"]
        assert by_title["Healthy Seminar"].generated_count == 1
        assert summary.total_generated == 1

    def test_scanner_skips_when_certificate_already_exists(
        self, db, registration, sessions, attend
    ):
        attend(registration, sessions[0], datetime(2025, 4, 1))
        CertificateService(db).issue_seminar_certificate(
            user_id=registration.user_id,
            seminar_id=registration.seminar_id,
            attendee_name="Ann Learner",
            credits=2.0,
            period="first_half",
            year=2025,
        )

        summary = CertificateEligibilityService(db).run(period="first_half", year=2025)

        assert summary.total_generated == 0
        assert db.query(Certificate).count() == 1


class TestGenerateForSeminar:
    def test_issues_only_the_selected_registrations(
        self, db, make_user, seminar, sessions, attend
    ):
        registrations = RegistrationService(db)
        chosen = registrations.create_registration(make_user().id, seminar.id)
        skipped = registrations.create_registration(make_user().id, seminar.id)
        for registration in (chosen, skipped):
            attend(registration, sessions[0], datetime(2025, 4, 1))

        window, report = CertificateEligibilityService(db).generate_for_seminar(
            seminar.id, "first_half", 2025, registration_ids=[chosen.id]
        )

        assert window.description == "January - June 2025"
        assert report.eligible_count == 1
        assert report.generated_count == 1
        assert [issued.registration.id for issued in report.issued] == [chosen.id]
        certificate = db.query(Certificate).one()
        assert certificate.user_id == chosen.user_id
        assert report.issued[0].certificate.id == certificate.id

    def test_without_a_filter_every_eligible_learner_is_issued(
        self, db, registration, sessions, attend
    ):
        attend(registration, sessions[0], datetime(2025, 4, 1))

        _, report = CertificateEligibilityService(db).generate_for_seminar(
            registration.seminar_id, "first_half", 2025
        )

        assert report.generated_count == 1
        assert report.issued[0].credits == 2.0

    def test_ineligible_ids_issue_nothing(self, db, registration, sessions, attend):
        attend(registration, sessions[0], datetime(2025, 4, 1))

        _, report = CertificateEligibilityService(db).generate_for_seminar(
            registration.seminar_id, "first_half", 2025, registration_ids=[9999]
        )

        assert report.eligible_count == 0
        assert report.message == "No eligible registrations"
        assert db.query(Certificate).count() == 0

    def test_unknown_seminar(self, db):
        with pytest.raises(NotFoundError):
            CertificateEligibilityService(db).generate_for_seminar(9999, "first_half", 2025)

    def test_invalid_period(self, db, seminar):
        with pytest.raises(ValidationError):
            CertificateEligibilityService(db).generate_for_seminar(seminar.id, "q3", 2025)
