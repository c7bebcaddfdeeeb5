# app/models/attendance.py
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    Float,
    Boolean,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.core.database import Base


class SeminarAttendance(Base):
    __tablename__ = "seminar_attendance"
    __table_args__ = (
        # Idempotency guard: one check-in per registration per session
        UniqueConstraint(
            "registration_id", "session_id", name="uq_seminar_attendance_registration_session"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    registration_id = Column(
        Integer, ForeignKey("seminar_registrations.id"), nullable=False, index=True
    )
    session_id = Column(
        Integer, ForeignKey("seminar_sessions.id"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seminar_id = Column(Integer, ForeignKey("seminars.id"), nullable=False, index=True)

    is_makeup = Column(Boolean, default=False, nullable=False)
    credits_awarded = Column(Float, nullable=False)

    checked_in_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    checked_in_by = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Operator who scanned the attendee",
    )
    notes = Column(Text, nullable=True)

    registration = relationship("SeminarRegistration", back_populates="attendance")
    session = relationship("SeminarSession")
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<SeminarAttendance(id={self.id}, registration_id={self.registration_id}, session_id={self.session_id})>"
