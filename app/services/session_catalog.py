# app/services/session_catalog.py
from typing import Any, Dict, List

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import NotFoundError
from app.models.attendance import SeminarAttendance
from app.models.registration import REGISTRATION_STATUSES, SeminarRegistration
from app.models.seminar import Seminar, SeminarSession


class SessionCatalogService:
    """Read side of seminars and their scheduled sessions"""

    def __init__(self, db: Session):
        self.db = db

    def get_seminar(self, seminar_id: int) -> Seminar:
        seminar = self.db.query(Seminar).filter(Seminar.id == seminar_id).first()
        if not seminar:
            raise NotFoundError("Seminar not found")
        return seminar

    def list_certificate_seminars(self) -> List[Seminar]:
        """Seminars whose attendance can still earn certificates"""
        return (
            self.db.query(Seminar)
            .filter(Seminar.status.in_(["active", "completed"]))
            .order_by(Seminar.year.desc(), Seminar.id)
            .all()
        )

    def get_session(self, session_id: int) -> SeminarSession:
        session = (
            self.db.query(SeminarSession)
            .filter(SeminarSession.id == session_id)
            .first()
        )
        if not session:
            raise NotFoundError("Session not found")
        return session

    def list_sessions(self, seminar_id: int) -> List[SeminarSession]:
        self.get_seminar(seminar_id)
        return (
            self.db.query(SeminarSession)
            .filter(SeminarSession.seminar_id == seminar_id)
            .order_by(SeminarSession.session_number)
            .all()
        )

    def session_attendance(self, session_id: int) -> List[SeminarAttendance]:
        self.get_session(session_id)
        return (
            self.db.query(SeminarAttendance)
            .filter(SeminarAttendance.session_id == session_id)
            .order_by(SeminarAttendance.checked_in_at.desc())
            .all()
        )

    def seminar_stats(self, seminar_id: int) -> Dict[str, Any]:
        seminar = self.get_seminar(seminar_id)

        status_counts = dict(
            self.db.query(SeminarRegistration.status, func.count(SeminarRegistration.id))
            .filter(SeminarRegistration.seminar_id == seminar_id)
            .group_by(SeminarRegistration.status)
            .all()
        )
        registrations = {status: status_counts.get(status, 0) for status in REGISTRATION_STATUSES}

        attendance_counts = dict(
            self.db.query(SeminarAttendance.session_id, func.count(SeminarAttendance.id))
            .filter(SeminarAttendance.seminar_id == seminar_id)
            .group_by(SeminarAttendance.session_id)
            .all()
        )

        sessions = []
        for session in self.list_sessions(seminar_id):
            sessions.append(
                {
                    "id": session.id,
                    "session_number": session.session_number,
                    "session_date": session.session_date,
                    "topic": session.topic,
                    "attendance_count": attendance_counts.get(session.id, 0),
                }
            )

        return {
            "seminar_id": seminar.id,
            "title": seminar.title,
            "year": seminar.year,
            "total_sessions": seminar.total_sessions,
            "registrations": registrations,
            "total_registrations": sum(registrations.values()),
            "total_check_ins": sum(attendance_counts.values()),
            "sessions": sessions,
        }
