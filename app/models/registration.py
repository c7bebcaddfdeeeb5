# app/models/registration.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    Date,
    DateTime,
    Text,
    ForeignKey,
    Index,
    text,
)
from sqlalchemy.sql import func
from datetime import date
from sqlalchemy.orm import relationship
from app.core.database import Base

REGISTRATION_STATUSES = ("active", "completed", "cancelled", "on_hold")


class SeminarRegistration(Base):
    __tablename__ = "seminar_registrations"
    __table_args__ = (
        # One live registration per learner per seminar
        Index(
            "ix_seminar_registrations_live_unique",
            "user_id",
            "seminar_id",
            unique=True,
            postgresql_where=text("status != 'cancelled'"),
            sqlite_where=text("status != 'cancelled'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seminar_id = Column(Integer, ForeignKey("seminars.id"), nullable=False, index=True)
    order_id = Column(String(100), nullable=True, index=True)

    registration_date = Column(Date, default=date.today)

    # Progress counters (cached projection of the attendance rows)
    sessions_completed = Column(Integer, default=0, nullable=False)
    sessions_remaining = Column(Integer, nullable=False)
    makeup_used = Column(Boolean, default=False, nullable=False)

    status = Column(String(50), default="active", nullable=False, index=True)

    # Check-in token printed as a QR code
    qr_code = Column(String(100), unique=True, index=True, nullable=False)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="seminar_registrations")
    seminar = relationship("Seminar")
    attendance = relationship(
        "SeminarAttendance",
        back_populates="registration",
        order_by="SeminarAttendance.checked_in_at",
    )

    def __repr__(self):
        return f"<SeminarRegistration(id={self.id}, user_id={self.user_id}, seminar_id={self.seminar_id}, status='{self.status}')>"

    @property
    def total_sessions(self):
        return self.sessions_completed + self.sessions_remaining

    @property
    def progress_percentage(self):
        """Share of the cycle already attended"""
        total = self.total_sessions
        if not total:
            return 0.0
        return round(self.sessions_completed / total * 100, 1)
