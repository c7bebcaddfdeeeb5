# app/schemas/seminar.py
from pydantic import BaseModel, ConfigDict
from datetime import date, datetime
from typing import Dict, List, Optional


class SessionResponse(BaseModel):
    """One scheduled session of a seminar"""

    model_config = ConfigDict(from_attributes=True)

    id: int
    seminar_id: int
    session_number: int
    session_date: date
    topic: Optional[str] = None
    description: Optional[str] = None
    credits: Optional[float] = None


class SeminarResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    slug: Optional[str] = None
    year: int
    description: Optional[str] = None
    total_sessions: Optional[int] = None
    credits_per_session: Optional[float] = None
    status: str
    created_at: Optional[datetime] = None


class SessionStats(BaseModel):
    id: int
    session_number: int
    session_date: date
    topic: Optional[str] = None
    attendance_count: int


class SeminarStatsResponse(BaseModel):
    """Registrations by status and check-ins per session"""

    seminar_id: int
    title: str
    year: int
    total_sessions: Optional[int] = None
    registrations: Dict[str, int]
    total_registrations: int
    total_check_ins: int
    sessions: List[SessionStats]
