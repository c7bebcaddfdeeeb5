# app/models/makeup_request.py
from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base

# pending -> approved/denied -> completed/cancelled
MAKEUP_STATUSES = ("pending", "approved", "denied", "completed", "cancelled", "expired")
OPEN_MAKEUP_STATUSES = ("pending", "approved")


class MakeupRequest(Base):
    __tablename__ = "seminar_makeup_requests"

    id = Column(Integer, primary_key=True, index=True)

    registration_id = Column(
        Integer, ForeignKey("seminar_registrations.id"), nullable=False, index=True
    )
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seminar_id = Column(Integer, ForeignKey("seminars.id"), nullable=False, index=True)

    missed_session_id = Column(
        Integer, ForeignKey("seminar_sessions.id"), nullable=False
    )
    requested_session_id = Column(
        Integer, ForeignKey("seminar_sessions.id", ondelete="SET NULL"), nullable=True
    )

    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)  # Admin notes
    status = Column(String(50), default="pending", nullable=False, index=True)

    # Admin response
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    reviewed_at = Column(DateTime, nullable=True)
    denial_reason = Column(Text, nullable=True)

    # Check-in that used this makeup
    attendance_id = Column(
        Integer, ForeignKey("seminar_attendance.id", ondelete="SET NULL"), nullable=True
    )

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False
    )

    registration = relationship("SeminarRegistration")
    missed_session = relationship("SeminarSession", foreign_keys=[missed_session_id])
    requested_session = relationship(
        "SeminarSession", foreign_keys=[requested_session_id]
    )

    def __repr__(self):
        return f"<MakeupRequest(id={self.id}, registration_id={self.registration_id}, status='{self.status}')>"
