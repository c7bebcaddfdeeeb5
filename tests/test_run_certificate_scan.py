"""
Tests for the command line certificate job.
"""

from datetime import datetime

import pytest

import run_certificate_scan
from app.models import Certificate
from app.services.attendance_service import AttendanceService


@pytest.fixture
def attended(db, registration, sessions):
    result = AttendanceService(db).check_in(
        session_id=sessions[0].id, registration_id=registration.id
    )
    result.attendance.checked_in_at = datetime(2025, 5, 20, 9, 0)
    db.commit()
    return registration


def test_dry_run_prints_summary_and_writes_nothing(db, attended, capsys):
    exit_code = run_certificate_scan.main(
        ["--period", "first_half", "--year", "2025", "--dry-run"]
    )

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "DRY RUN: Seminar certificates for January - June 2025" in out
    assert "1 eligible, 1 would be generated" in out
    assert db.query(Certificate).count() == 0


def test_run_issues_certificates(db, attended):
    exit_code = run_certificate_scan.main(["--period", "first_half", "--year", "2025"])

    assert exit_code == 0
    assert db.query(Certificate).count() == 1


def test_invalid_year_exits_non_zero(capsys):
    assert run_certificate_scan.main(["--period", "first_half", "--year", "1900"]) == 1
    assert "Invalid year" in capsys.readouterr().out
