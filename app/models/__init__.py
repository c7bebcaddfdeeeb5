from .user import User
from .seminar import Seminar, SeminarSession
from .registration import SeminarRegistration
from .attendance import SeminarAttendance
from .ce_ledger import CELedgerEntry
from .certificate import Certificate
from .makeup_request import MakeupRequest


__all__ = [
    "User",
    "Seminar",
    "SeminarSession",
    "SeminarRegistration",
    "SeminarAttendance",
    "CELedgerEntry",
    "Certificate",
    "MakeupRequest",
]
