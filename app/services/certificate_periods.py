# app/services/certificate_periods.py - Half-year certificate windows

from datetime import date, datetime
from dateutil.relativedelta import relativedelta
from typing import Optional
from dataclasses import dataclass

from app.core.errors import ValidationError
from app.models.certificate import PERIODS

PERIOD_START_MONTH = {"first_half": 1, "second_half": 7}
PERIOD_LABELS = {"first_half": "January - June", "second_half": "July - December"}
PERIOD_MARKERS = {"first_half": "H1", "second_half": "H2"}


@dataclass(frozen=True)
class CertificatePeriod:
    """A half-year eligibility window, [starts_at, ends_before)"""
    period: str  # "first_half", "second_half"
    year: int
    starts_at: datetime
    ends_before: datetime

    @property
    def description(self) -> str:
        return f"{PERIOD_LABELS[self.period]} {self.year}"

    @property
    def marker(self) -> str:
        return f"{self.year}{PERIOD_MARKERS[self.period]}"

    def contains(self, moment: datetime) -> bool:
        return self.starts_at <= moment < self.ends_before


def get_period(period: str, year: int) -> CertificatePeriod:
    if period not in PERIODS:
        raise ValidationError(f"Invalid period: {period}. Use first_half or second_half")
    if year < 2000 or year > 9998:
        raise ValidationError(f"Invalid year: {year}")

    starts_at = datetime(year, PERIOD_START_MONTH[period], 1)
    return CertificatePeriod(
        period=period,
        year=year,
        starts_at=starts_at,
        ends_before=starts_at + relativedelta(months=6),
    )


def detect_period(today: Optional[date] = None) -> CertificatePeriod:
    """January - June belongs to first_half, July - December to second_half"""
    if today is None:
        today = date.today()
    period = "first_half" if today.month <= 6 else "second_half"
    return get_period(period, today.year)
