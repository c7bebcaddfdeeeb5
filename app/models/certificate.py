# app/models/certificate.py
from datetime import datetime

from sqlalchemy import (
    Column,
    Integer,
    String,
    Float,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from app.core.database import Base

PERIODS = ("first_half", "second_half")


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        UniqueConstraint(
            "user_id", "seminar_id", "period", "year", name="uq_certificates_seminar_period"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    certificate_code = Column(String(50), unique=True, index=True, nullable=False)

    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    seminar_id = Column(Integer, ForeignKey("seminars.id"), nullable=True, index=True)

    attendee_name = Column(String(255), nullable=False)

    # Half-year key for seminar certificates
    period = Column(String(20), nullable=True)  # first_half, second_half
    year = Column(Integer, nullable=True)
    ce_credits = Column(Float, nullable=True)

    notes = Column(Text, nullable=True)
    pdf_url = Column(String(500), nullable=True)

    generated_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    sent_at = Column(DateTime, nullable=True)

    user = relationship("User")
    seminar = relationship("Seminar")

    def __repr__(self):
        return f"<Certificate(code='{self.certificate_code}', user_id={self.user_id}, period='{self.period}', year={self.year})>"
