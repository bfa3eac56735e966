"""
Invitation and admin account schemas
"""

from typing import Optional
from pydantic import BaseModel

class SettingsUpdate(BaseModel):
    couple_name: Optional[str] = None
    wedding_date: Optional[str] = None
    wedding_location: Optional[str] = None
    hero_message: Optional[str] = None

class SectionCreate(BaseModel):
    title: str = ""
    body: str = ""
    image_url: str = ""
    sort_order: int = 0

class FieldCreate(BaseModel):
    label: str = ""
    field_key: str = ""
    field_type: str = "text"
    options: str = ""
    required: bool = False

class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""

class AdminCreate(BaseModel):
    username: str = ""
    password: str = ""
