# app/api/makeup_requests.py - Makeup session requests
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from app.core.database import get_db
from app.models.user import User
from app.schemas.makeup import MakeupRequestCreate, MakeupRequestResponse, MakeupReview
from app.services.jwt_service import get_current_operator, get_current_user
from app.services.makeup_service import MakeupService
from app.services.registration_service import RegistrationService

router = APIRouter(tags=["Makeup Requests"])


@router.post(
    "/api/account/makeup-requests",
    response_model=MakeupRequestResponse,
    status_code=201,
)
async def request_makeup(
    request: MakeupRequestCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """A learner asks to make up a missed session"""
    registration = RegistrationService(db).get_registration(request.registration_id)
    if registration.user_id != current_user.id:
        raise HTTPException(status_code=404, detail="Registration not found")

    return MakeupService(db).request_makeup(
        registration_id=request.registration_id,
        missed_session_id=request.missed_session_id,
        requested_session_id=request.requested_session_id,
        reason=request.reason,
    )


@router.get(
    "/api/admin/seminars/makeup-requests",
    response_model=List[MakeupRequestResponse],
)
async def list_makeup_requests(
    seminar_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return MakeupService(db).list_requests(seminar_id=seminar_id, status=status)


@router.post(
    "/api/admin/seminars/makeup-requests/{request_id}/review",
    response_model=MakeupRequestResponse,
)
async def review_makeup_request(
    request_id: int,
    review: MakeupReview,
    db: Session = Depends(get_db),
    operator: User = Depends(get_current_operator),
):
    return MakeupService(db).review(
        request_id,
        review.action,
        operator_id=operator.id,
        notes=review.notes,
        denial_reason=review.denial_reason,
        requested_session_id=review.requested_session_id,
    )
