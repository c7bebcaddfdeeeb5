# app/schemas/certificate.py
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import List, Optional


class CertificateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    certificate_code: str
    user_id: int
    seminar_id: Optional[int] = None
    attendee_name: str
    period: Optional[str] = None
    year: Optional[int] = None
    ce_credits: Optional[float] = None
    notes: Optional[str] = None
    pdf_url: Optional[str] = None
    generated_at: datetime
    sent_at: Optional[datetime] = None


class CertificateVerification(BaseModel):
    """Public view of a certificate looked up by its code"""

    valid: bool = True
    certificate_code: str
    attendee_name: str
    seminar_title: Optional[str] = None
    period: Optional[str] = None
    ce_credits: Optional[float] = None
    issued_at: datetime


class EligibleRegistrationResponse(BaseModel):
    registration_id: int
    user_id: int
    attendee_name: Optional[str] = None
    email: Optional[str] = None
    credits_earned: float
    sessions_in_period: int


class EligiblePreviewResponse(BaseModel):
    seminar_id: int
    period: str
    year: int
    description: str
    eligible: List[EligibleRegistrationResponse]


class SeminarScanResult(BaseModel):
    seminar_id: int
    seminar_title: str
    eligible_count: int
    generated_count: int
    errors: List[str] = []
    message: Optional[str] = None


class CertificateScanResponse(BaseModel):
    """Outcome of one run of the bi-annual certificate job"""

    success: bool
    message: str
    period: str
    year: int
    description: str
    dry_run: bool
    seminars_processed: int
    total_generated: int
    details: List[SeminarScanResult]


class DeliveryResponse(BaseModel):
    success: bool
    certificate: CertificateResponse
    message_id: Optional[str] = None
    error: Optional[str] = None


class DeliveryRequest(BaseModel):
    email: Optional[str] = Field(None, description="Send to this address instead of the holder's")


class CertificateGenerateRequest(BaseModel):
    period: str = Field(..., description="first_half or second_half")
    year: Optional[int] = Field(None, description="Defaults to the current year")
    registration_ids: Optional[List[int]] = Field(
        None, description="Only issue for these registrations"
    )


class GeneratedCertificate(BaseModel):
    certificate_id: int
    certificate_code: str
    registration_id: int
    attendee_name: str
    email: Optional[str] = None
    credits: float


class CertificateGenerateResponse(BaseModel):
    success: bool
    message: str
    seminar_id: int
    period: str
    year: int
    description: str
    eligible_count: int
    count: int
    generated: List[GeneratedCertificate]
    errors: List[str] = []
