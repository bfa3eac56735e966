"""
Guest, RSVP and check-in request schemas
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field

class RSVPRequest(BaseModel):
    """Public RSVP submitted from the invitation page"""
    name: str = ""
    phone: str = ""
    attending: bool = False
    responses: Dict[str, Any] = Field(default_factory=dict)

class GuestCreate(BaseModel):
    """Admin add-or-update guest (matched by phone)"""
    name: str = ""
    phone: str = ""
    attending: bool = False
    table_no: Optional[str] = None
    responses: Dict[str, Any] = Field(default_factory=dict)

class GuestUpdate(BaseModel):
    """Schema for editing a guest by id"""
    name: Optional[str] = None
    phone: Optional[str] = None
    attending: Optional[bool] = None
    table_no: Optional[str] = None
    responses: Optional[Dict[str, Any]] = None

class TableAssignment(BaseModel):
    table_no: str = ""

class CheckInRequest(BaseModel):
    """On-site lookup by name or phone"""
    lookup: str = ""
    confirm_attending: bool = False
    actual_attendees: int = 1

class NewGuestCheckInRequest(BaseModel):
    """Check-in for a guest who is not on the list"""
    name: str = ""
    phone: str = ""
    confirm_attending: bool = False
    actual_attendees: int = 1

class ManualCheckInRequest(BaseModel):
    name: str = ""
    phone: Optional[str] = None
    table_no: Optional[str] = None
    actual_attendees: int = 1

class CheckInUpdate(BaseModel):
    actual_attendees: int
