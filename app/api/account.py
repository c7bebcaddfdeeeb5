# app/api/account.py - Learner self-service
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from app.core.database import get_db
from app.models.user import User
from app.schemas.certificate import CertificateResponse
from app.schemas.ledger import CreditHistoryResponse, LedgerEntryResponse
from app.schemas.registration import RegistrationResponse
from app.services.ce_ledger import CELedgerService
from app.services.certificate_service import CertificateService
from app.services.jwt_service import get_current_user
from app.services.registration_service import RegistrationService

router = APIRouter(prefix="/api/account", tags=["Account"])


@router.get("/registrations", response_model=List[RegistrationResponse])
async def get_my_registrations(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Seminar registrations with session progress"""
    return RegistrationService(db).list_for_user(current_user.id)


@router.get("/credits", response_model=CreditHistoryResponse)
async def get_my_credits(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ledger = CELedgerService(db)
    entries = ledger.list_entries_for_user(current_user.id)
    return CreditHistoryResponse(
        total_credits=ledger.sum_credits_for_user(current_user.id),
        entries=[LedgerEntryResponse.model_validate(entry) for entry in entries],
    )


@router.get("/certificates", response_model=List[CertificateResponse])
async def get_my_certificates(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CertificateService(db).list_for_user(current_user.id)
