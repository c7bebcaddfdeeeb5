# app/api/seminars.py - Seminar sessions and statistics
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.models.user import User
from app.schemas.attendance import AttendanceResponse
from app.schemas.seminar import SeminarStatsResponse, SessionResponse
from app.services.jwt_service import get_current_operator
from app.services.session_catalog import SessionCatalogService

router = APIRouter(prefix="/api/admin/seminars", tags=["Seminars"])


@router.get("/{seminar_id}/sessions", response_model=List[SessionResponse])
async def list_sessions(
    seminar_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return SessionCatalogService(db).list_sessions(seminar_id)


@router.get("/{seminar_id}/stats", response_model=SeminarStatsResponse)
async def get_seminar_stats(
    seminar_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return SessionCatalogService(db).seminar_stats(seminar_id)


@router.get(
    "/sessions/{session_id}/attendance", response_model=List[AttendanceResponse]
)
async def get_session_attendance(
    session_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    """Everyone checked in to one session, most recent first"""
    return SessionCatalogService(db).session_attendance(session_id)
