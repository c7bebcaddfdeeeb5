"""
Tests for the attendance recorder.

Every rejected check-in must leave the registration, attendance and ledger
exactly as they were.
"""

from datetime import date

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from app.core.database import Base
from app.core.errors import (
    CapacityError,
    DuplicateError,
    InvalidStateError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from app.models import CELedgerEntry, Seminar, SeminarAttendance, SeminarSession, User
from app.services.attendance_service import AttendanceService
from app.services.registration_service import RegistrationService


def snapshot(db, registration):
    db.refresh(registration)
    return (
        registration.sessions_completed,
        registration.sessions_remaining,
        registration.makeup_used,
        registration.status,
        db.query(SeminarAttendance).count(),
        db.query(CELedgerEntry).count(),
    )


class TestCheckIn:
    def test_check_in_by_qr_code(self, db, registration, sessions):
        result = AttendanceService(db).check_in(
            session_id=sessions[0].id, qr_code=registration.qr_code
        )

        assert result.credits_awarded == 2.0
        assert result.registration.sessions_completed == 1
        assert result.registration.sessions_remaining == 3
        assert result.attendance.session_id == sessions[0].id
        assert result.attendance.user_id == registration.user_id

    def test_check_in_writes_matching_ledger_entry(self, db, registration, sessions, operator):
        result = AttendanceService(db).check_in(
            session_id=sessions[0].id,
            registration_id=registration.id,
            operator_id=operator.id,
        )

        entry = db.query(CELedgerEntry).one()
        assert entry.attendance_id == result.attendance.id
        assert entry.source == "seminar_session"
        assert entry.transaction_type == "earned"
        assert entry.credits == 2.0
        assert entry.awarded_at == result.attendance.checked_in_at
        assert result.attendance.checked_in_by == operator.id

    def test_counter_invariant_holds_across_the_cycle(self, db, registration, sessions):
        service = AttendanceService(db)

        for session in sessions:
            result = service.check_in(session_id=session.id, registration_id=registration.id)
            reg = result.registration
            assert reg.sessions_completed + reg.sessions_remaining == 4
            assert 0 <= reg.sessions_remaining <= 4

    def test_last_session_completes_the_registration(self, db, registration, sessions):
        service = AttendanceService(db)
        for session in sessions:
            result = service.check_in(session_id=session.id, registration_id=registration.id)

        assert result.registration.sessions_remaining == 0
        assert result.registration.status == "completed"

    def test_session_credit_override_wins(self, db, registration, sessions):
        sessions[1].credits = 3.5
        db.commit()

        result = AttendanceService(db).check_in(
            session_id=sessions[1].id, registration_id=registration.id
        )
        assert result.credits_awarded == 3.5

    def test_default_credits_when_seminar_has_none(self, db, user, make_seminar):
        seminar = make_seminar(credits_per_session=None)
        registration = RegistrationService(db).create_registration(user.id, seminar.id)

        result = AttendanceService(db).check_in(
            session_id=seminar.sessions[0].id, registration_id=registration.id
        )
        assert result.credits_awarded == 2.0

    def test_requires_a_registration_reference(self, db, sessions):
        with pytest.raises(ValidationError):
            AttendanceService(db).check_in(session_id=sessions[0].id)


class TestRejectedCheckIns:
    def test_duplicate_check_in_changes_nothing(self, db, registration, sessions):
        service = AttendanceService(db)
        service.check_in(session_id=sessions[0].id, registration_id=registration.id)
        before = snapshot(db, registration)

        with pytest.raises(DuplicateError, match="Already checked in for this session"):
            service.check_in(session_id=sessions[0].id, qr_code=registration.qr_code)

        assert snapshot(db, registration) == before

    def test_unknown_session(self, db, registration):
        with pytest.raises(NotFoundError):
            AttendanceService(db).check_in(session_id=999, registration_id=registration.id)

    def test_unknown_qr_code(self, db, sessions):
        with pytest.raises(NotFoundError):
            AttendanceService(db).check_in(session_id=sessions[0].id, qr_code="SEM-UNKNOWN")

    def test_session_from_another_seminar_writes_nothing(
        self, db, registration, make_seminar
    ):
        other = make_seminar(title="Audit Seminar")
        before = snapshot(db, registration)

        with pytest.raises(ValidationError, match="different seminar"):
            AttendanceService(db).check_in(
                session_id=other.sessions[0].id, registration_id=registration.id
            )

        assert snapshot(db, registration) == before

    @pytest.mark.parametrize("status", ["cancelled", "on_hold"])
    def test_inactive_registration(self, db, registration, sessions, status):
        RegistrationService(db).update_registration(registration.id, {"status": status})

        with pytest.raises(InvalidStateError, match=f"Registration is {status}"):
            AttendanceService(db).check_in(
                session_id=sessions[0].id, registration_id=registration.id
            )

    def test_no_sessions_remaining_writes_nothing(self, db, make_user, make_seminar):
        # Two-session seminar with an extra scheduled session
        seminar = make_seminar(total_sessions=3)
        seminar.total_sessions = 2
        db.commit()
        registration = RegistrationService(db).create_registration(make_user().id, seminar.id)
        sessions = seminar.sessions

        service = AttendanceService(db)
        service.check_in(session_id=sessions[0].id, registration_id=registration.id)
        service.check_in(session_id=sessions[1].id, registration_id=registration.id)

        # Reopen the completed registration to reach the capacity guard
        registration.status = "active"
        db.commit()
        before = snapshot(db, registration)

        with pytest.raises(CapacityError, match="No sessions remaining"):
            service.check_in(session_id=sessions[2].id, registration_id=registration.id)

        assert snapshot(db, registration) == before


class TestMakeup:
    def test_makeup_check_in_consumes_the_allowance(self, db, registration, sessions):
        result = AttendanceService(db).check_in(
            session_id=sessions[0].id, registration_id=registration.id, is_makeup=True
        )

        assert result.attendance.is_makeup is True
        assert result.registration.makeup_used is True

    def test_second_makeup_is_rejected(self, db, registration, sessions):
        service = AttendanceService(db)
        service.check_in(session_id=sessions[0].id, registration_id=registration.id, is_makeup=True)
        before = snapshot(db, registration)

        with pytest.raises(PolicyError, match="Makeup session has already been used"):
            service.check_in(
                session_id=sessions[1].id, registration_id=registration.id, is_makeup=True
            )

        assert snapshot(db, registration) == before

    def test_regular_check_in_after_makeup_is_fine(self, db, registration, sessions):
        service = AttendanceService(db)
        service.check_in(session_id=sessions[0].id, registration_id=registration.id, is_makeup=True)
        result = service.check_in(session_id=sessions[1].id, registration_id=registration.id)

        assert result.registration.sessions_completed == 2


class TestConcurrentScans:
    """Two scans of one badge racing past the duplicate check."""

    @pytest.fixture
    def file_sessionmaker(self, tmp_path):
        engine = create_engine(
            f"sqlite:///{tmp_path / 'race.db'}",
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(bind=engine)
        try:
            yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
        finally:
            engine.dispose()

    def test_losing_scan_is_a_duplicate_and_writes_nothing(self, file_sessionmaker):
        scanner = file_sessionmaker()
        rival = file_sessionmaker()
        try:
            learner = User(email="race@seminars.org", first_name="Ann", last_name="Learner")
            seminar = Seminar(
                title="Tax Seminar", year=2025, total_sessions=4, credits_per_session=2.0
            )
            scanner.add_all([learner, seminar])
            scanner.flush()
            session = SeminarSession(
                seminar_id=seminar.id, session_number=1, session_date=date(2025, 1, 15)
            )
            scanner.add(session)
            scanner.commit()
            registration = RegistrationService(scanner).create_registration(
                learner.id, seminar.id
            )

            ids = {
                "registration_id": registration.id,
                "session_id": session.id,
                "user_id": learner.id,
                "seminar_id": seminar.id,
            }
            fired = []

            def rival_scan_commits_first(flushing_session, flush_context, instances):
                rival.add(SeminarAttendance(credits_awarded=2.0, **ids))
                rival.commit()
                fired.append(True)

            event.listen(scanner, "before_flush", rival_scan_commits_first, once=True)

            with pytest.raises(DuplicateError, match="Already checked in for this session"):
                AttendanceService(scanner).check_in(
                    session_id=ids["session_id"], registration_id=ids["registration_id"]
                )

            assert fired == [True]
            scanner.refresh(registration)
            assert registration.sessions_completed == 0
            assert registration.sessions_remaining == 4
            assert registration.status == "active"
            assert scanner.query(CELedgerEntry).count() == 0
            assert scanner.query(SeminarAttendance).count() == 1
        finally:
            scanner.close()
            rival.close()
