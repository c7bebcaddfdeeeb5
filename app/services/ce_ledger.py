# app/services/ce_ledger.py - Append-only CE credit ledger
from datetime import datetime, timedelta
from typing import List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ValidationError
from app.models.ce_ledger import CELedgerEntry, LEDGER_SOURCES, TRANSACTION_TYPES

logger = logging.getLogger(__name__)


class CELedgerService:
    """
    Append-only store of CE credit transactions.

    Writes only flush; committing belongs to the caller so an entry can be part
    of a larger unit of work (a check-in, an undo).
    """

    def __init__(self, db: Session):
        self.db = db

    def append_entry(
        self,
        user_id: int,
        credits: float,
        source: str,
        transaction_type: str = "earned",
        notes: Optional[str] = None,
        seminar_id: Optional[int] = None,
        session_id: Optional[int] = None,
        attendance_id: Optional[int] = None,
        awarded_at: Optional[datetime] = None,
    ) -> CELedgerEntry:
        if source not in LEDGER_SOURCES:
            raise ValidationError(f"Unknown credit source: {source}")
        if transaction_type not in TRANSACTION_TYPES:
            raise ValidationError(f"Unknown transaction type: {transaction_type}")

        entry = CELedgerEntry(
            user_id=user_id,
            credits=credits,
            source=source,
            transaction_type=transaction_type,
            notes=notes,
            seminar_id=seminar_id,
            session_id=session_id,
            attendance_id=attendance_id,
            awarded_at=awarded_at or datetime.utcnow(),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def sum_credits_for_user(self, user_id: int) -> float:
        total = (
            self.db.query(func.coalesce(func.sum(CELedgerEntry.credits), 0.0))
            .filter(CELedgerEntry.user_id == user_id)
            .scalar()
        )
        return float(total or 0.0)

    def list_entries_for_user(self, user_id: int) -> List[CELedgerEntry]:
        """Newest first"""
        return (
            self.db.query(CELedgerEntry)
            .filter(CELedgerEntry.user_id == user_id)
            .order_by(CELedgerEntry.awarded_at.desc(), CELedgerEntry.id.desc())
            .all()
        )

    def remove_entry_for_attendance(
        self,
        attendance_id: int,
        user_id: int,
        source: str,
        checked_in_at: datetime,
    ) -> Optional[CELedgerEntry]:
        """
        Delete the ledger entry created by a check-in.

        Entries carrying ``attendance_id`` are removed exactly. Older entries
        without the back-reference are matched on learner, source and an
        ``awarded_at`` within ``ledger_match_window_seconds`` of the check-in;
        anything but a single match is left alone and logged. Returns the
        removed entry, or None.
        """
        entry = (
            self.db.query(CELedgerEntry)
            .filter(CELedgerEntry.attendance_id == attendance_id)
            .first()
        )

        if entry is None:
            window = timedelta(seconds=settings.ledger_match_window_seconds)
            candidates = (
                self.db.query(CELedgerEntry)
                .filter(
                    CELedgerEntry.user_id == user_id,
                    CELedgerEntry.source == source,
                    CELedgerEntry.attendance_id.is_(None),
                    CELedgerEntry.awarded_at >= checked_in_at - window,
                    CELedgerEntry.awarded_at <= checked_in_at + window,
                )
                .all()
            )
            if len(candidates) != 1:
                logger.warning(
                    f"No unique ledger entry for attendance {attendance_id} "
                    f"(user {user_id}, {len(candidates)} candidates); ledger left unchanged"
                )
                return None
            entry = candidates[0]

        self.db.delete(entry)
        self.db.flush()
        logger.info(
            f"Removed ledger entry {entry.id} ({entry.credits} credits) for attendance {attendance_id}"
        )
        return entry
