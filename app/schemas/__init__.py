# app/schemas/__init__.py
"""
Pydantic schemas for FastAPI request/response validation
"""

from .seminar import (
    SessionResponse,
    SeminarResponse,
    SessionStats,
    SeminarStatsResponse,
)

from .registration import (
    RegistrationCreate,
    RegistrationUpdate,
    RegistrationResponse,
    ReconcileResponse,
)

from .attendance import (
    CheckInRequest,
    CheckInResponse,
    AttendanceResponse,
    RevertedAttendance,
    UndoCheckInResponse,
)

from .ledger import LedgerEntryResponse, CreditHistoryResponse

from .certificate import (
    CertificateResponse,
    CertificateVerification,
    EligibleRegistrationResponse,
    EligiblePreviewResponse,
    SeminarScanResult,
    CertificateScanResponse,
    DeliveryResponse,
    DeliveryRequest,
    CertificateGenerateRequest,
    GeneratedCertificate,
    CertificateGenerateResponse,
)

from .makeup import MakeupRequestCreate, MakeupReview, MakeupRequestResponse

__all__ = [
    # Seminars
    "SessionResponse",
    "SeminarResponse",
    "SessionStats",
    "SeminarStatsResponse",
    # Registrations
    "RegistrationCreate",
    "RegistrationUpdate",
    "RegistrationResponse",
    "ReconcileResponse",
    # Attendance
    "CheckInRequest",
    "CheckInResponse",
    "AttendanceResponse",
    "RevertedAttendance",
    "UndoCheckInResponse",
    # Ledger
    "LedgerEntryResponse",
    "CreditHistoryResponse",
    # Certificates
    "CertificateResponse",
    "CertificateVerification",
    "EligibleRegistrationResponse",
    "EligiblePreviewResponse",
    "SeminarScanResult",
    "CertificateScanResponse",
    "DeliveryResponse",
    "DeliveryRequest",
    "CertificateGenerateRequest",
    "GeneratedCertificate",
    "CertificateGenerateResponse",
    # Makeup requests
    "MakeupRequestCreate",
    "MakeupReview",
    "MakeupRequestResponse",
]
