# app/models/ce_ledger.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, Float, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base

SOURCE_SEMINAR_SESSION = "seminar_session"
LEDGER_SOURCES = ("course_attendance", SOURCE_SEMINAR_SESSION, "manual", "adjustment")
TRANSACTION_TYPES = ("earned", "adjustment")


class CELedgerEntry(Base):
    """One append-only CE credit transaction"""

    __tablename__ = "ce_ledger"

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seminar_id = Column(
        Integer, ForeignKey("seminars.id", ondelete="SET NULL"), nullable=True
    )
    session_id = Column(
        Integer, ForeignKey("seminar_sessions.id", ondelete="SET NULL"), nullable=True
    )
    # Originating check-in; null for manual entries and rows written before
    # the back-reference existed
    attendance_id = Column(
        Integer,
        ForeignKey("seminar_attendance.id", ondelete="SET NULL"),
        nullable=True,
        unique=True,
        index=True,
    )

    credits = Column(Float, nullable=False)
    source = Column(String(100), nullable=False)
    transaction_type = Column(String(50), default="earned", nullable=False)
    notes = Column(Text, nullable=True)

    awarded_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    seminar = relationship("Seminar")

    def __repr__(self):
        return f"<CELedgerEntry(id={self.id}, user_id={self.user_id}, credits={self.credits}, source='{self.source}')>"
