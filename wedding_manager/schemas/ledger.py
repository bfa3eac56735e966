"""
Ledger schemas
"""

from datetime import date
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel

class LedgerEntryCreate(BaseModel):
    amount: Optional[Decimal] = None
    direction: str = ""
    category: str = ""
    purpose: str = ""
    payer: str = ""
    payee: str = ""
    method: str = ""
    note: str = ""
    occurred_at: Optional[date] = None

class LedgerEntryUpdate(BaseModel):
    amount: Optional[Decimal] = None
    direction: Optional[str] = None
    category: Optional[str] = None
    purpose: Optional[str] = None
    payer: Optional[str] = None
    payee: Optional[str] = None
    method: Optional[str] = None
    note: Optional[str] = None
    occurred_at: Optional[date] = None
