#!/usr/bin/env python3
"""
Standalone script to run the bi-annual seminar certificate job
Same job as POST /api/cron/seminar-certificates, for manual or crontab runs
"""

import sys
from pathlib import Path
import argparse
from datetime import datetime

# Add the project root to the Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

from app.core.database import SessionLocal
from app.core.errors import DomainError
from app.core.logging import setup_logging
from app.services.certificate_eligibility import CertificateEligibilityService


def run_scan(period=None, year=None, dry_run: bool = False):
    """Run the certificate job and print a summary of it"""
    db = SessionLocal()

    try:
        summary = CertificateEligibilityService(db).run(
            period=period, year=year, dry_run=dry_run
        )

        print(f"{'DRY RUN: ' if dry_run else ''}Seminar certificates for {summary.description}")
        print(f"Started at: {datetime.now()}")
        print("-" * 50)

        for report in summary.details:
            line = (
                f"  [{report.seminar_id}] {report.seminar_title}: "
                f"{report.eligible_count} eligible, {report.generated_count} "
                f"{'would be generated' if dry_run else 'generated'}"
            )
            if report.message:
                line += f" ({report.message})"
            print(line)
            for error in report.errors:
                print(f"      error: {error}")

        print(f"\nSeminars processed: {summary.seminars_processed}")
        print(f"Certificates {'to generate' if dry_run else 'generated'}: {summary.total_generated}")

        if summary.has_errors:
            print("Some seminars reported errors. Check logs for details.")

        return summary

    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Issue seminar CE certificates for a half-year period",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run_certificate_scan.py
  python run_certificate_scan.py --dry-run
  python run_certificate_scan.py --period first_half --year 2025

Without --period/--year the half-year containing today is used.
Re-running is safe: certificates already issued are skipped.
        """,
    )
    parser.add_argument(
        "--period",
        choices=["first_half", "second_half"],
        help="Half-year to issue certificates for",
    )
    parser.add_argument("--year", type=int, help="Calendar year of the period")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show who is eligible without issuing certificates",
    )

    args = parser.parse_args(argv)

    try:
        summary = run_scan(period=args.period, year=args.year, dry_run=args.dry_run)
    except DomainError as e:
        print(f"\nError: {e.message}")
        return 1

    return 1 if summary.has_errors else 0


if __name__ == "__main__":
    setup_logging()
    sys.exit(main())
