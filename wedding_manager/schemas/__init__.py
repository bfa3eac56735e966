"""
Pydantic schemas package
"""

from .common import *
from .guest import *
from .table import *
from .lottery import *
from .ledger import *
from .invitation import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "RSVPRequest",
    "GuestCreate",
    "GuestUpdate",
    "TableAssignment",
    "CheckInRequest",
    "NewGuestCheckInRequest",
    "ManualCheckInRequest",
    "CheckInUpdate",
    "TableUpsert",
    "TableUpdate",
    "PrizeCreate",
    "DrawRequest",
    "LedgerEntryCreate",
    "LedgerEntryUpdate",
    "SettingsUpdate",
    "SectionCreate",
    "FieldCreate",
    "LoginRequest",
    "AdminCreate",
]
