# app/models/seminar.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    Date,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base


class Seminar(Base):
    __tablename__ = "seminars"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    slug = Column(String(255), unique=True, index=True, nullable=True)
    year = Column(Integer, nullable=False, index=True)
    description = Column(Text, nullable=True)

    # Cycle definition
    total_sessions = Column(
        Integer, nullable=True, comment="Number of sessions in one enrollment cycle"
    )
    credits_per_session = Column(
        Float, nullable=True, comment="CE credits per attended session"
    )

    status = Column(
        String(50), default="active", nullable=False
    )  # draft, active, completed, archived

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    sessions = relationship(
        "SeminarSession",
        back_populates="seminar",
        order_by="SeminarSession.session_number",
    )

    def __repr__(self):
        return f"<Seminar(id={self.id}, title='{self.title}', year={self.year})>"


class SeminarSession(Base):
    __tablename__ = "seminar_sessions"
    __table_args__ = (
        UniqueConstraint(
            "seminar_id", "session_number", name="uq_seminar_sessions_number"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    seminar_id = Column(
        Integer, ForeignKey("seminars.id", ondelete="CASCADE"), nullable=False, index=True
    )

    session_number = Column(Integer, nullable=False)
    session_date = Column(Date, nullable=False, index=True)
    topic = Column(String(500), nullable=True)
    description = Column(Text, nullable=True)

    # Overrides the seminar's credits_per_session when set
    credits = Column(Float, nullable=True)

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    seminar = relationship("Seminar", back_populates="sessions")

    def __repr__(self):
        return f"<SeminarSession(id={self.id}, seminar_id={self.seminar_id}, number={self.session_number})>"
