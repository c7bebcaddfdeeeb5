# app/schemas/ledger.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional


class LedgerEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    credits: float
    source: str
    transaction_type: str
    seminar_id: Optional[int] = None
    session_id: Optional[int] = None
    notes: Optional[str] = None
    awarded_at: datetime


class CreditHistoryResponse(BaseModel):
    """A learner's credit transactions, newest first, with their sum"""

    total_credits: float
    entries: List[LedgerEntryResponse]
