# app/api/registrations.py - Admin registration management
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.database import get_db
from app.models.user import User
from app.schemas.registration import (
    ReconcileResponse,
    RegistrationCreate,
    RegistrationResponse,
    RegistrationUpdate,
)
from app.services.attendance_service import AttendanceService
from app.services.jwt_service import get_current_operator
from app.services.registration_service import RegistrationService

router = APIRouter(
    prefix="/api/admin/seminars/registrations", tags=["Seminar Registrations"]
)


@router.post("", response_model=RegistrationResponse, status_code=201)
async def create_registration(
    request: RegistrationCreate,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return RegistrationService(db).create_registration(
        user_id=request.user_id,
        seminar_id=request.seminar_id,
        order_id=request.order_id,
    )


@router.get("", response_model=List[RegistrationResponse])
async def list_registrations(
    seminar_id: int = Query(..., description="Seminar to list"),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return RegistrationService(db).list_for_seminar(seminar_id, status=status)


@router.get("/by-code/{qr_code}", response_model=RegistrationResponse)
async def get_registration_by_code(
    qr_code: str,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    """Look up the registration behind a scanned QR code"""
    return RegistrationService(db).get_by_check_in_code(qr_code)


@router.get("/{registration_id}", response_model=RegistrationResponse)
async def get_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return RegistrationService(db).get_registration(registration_id)


@router.patch("/{registration_id}", response_model=RegistrationResponse)
async def update_registration(
    registration_id: int,
    request: RegistrationUpdate,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return RegistrationService(db).update_registration(
        registration_id, request.model_dump(exclude_unset=True)
    )


@router.post("/{registration_id}/cancel", response_model=RegistrationResponse)
async def cancel_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return RegistrationService(db).cancel_registration(registration_id)


@router.post("/{registration_id}/reconcile", response_model=ReconcileResponse)
async def reconcile_registration(
    registration_id: int,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    """Recompute progress counters from the attendance history"""
    return AttendanceService(db).reconcile_registration(registration_id)
