"""
Store document schemas

The whole application state is one aggregate document. Each top-level key is a
collection (or the settings/counters maps) and is persisted as a unit.
"""

import re
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ATTENDEES_FIELD_KEY = "attendees"
UNASSIGNED_TABLE_LABEL = "未分配"

LEDGER_DIRECTIONS = ("income", "expense")
LEDGER_CATEGORIES = (
    "礼金",
    "场地",
    "餐饮",
    "婚庆策划",
    "服装造型",
    "摄影摄像",
    "婚品物料",
    "交通住宿",
    "其他",
)

FIELD_TYPES = ("text", "textarea", "select")

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def compute_party_size(responses: Optional[Dict[str, Any]]) -> int:
    """Number of people a guest record stands for, never less than 1.

    Reads the leading integer of the ``attendees`` response, so select
    options such as ``"4+"`` count as 4.
    """
    raw = (responses or {}).get(ATTENDEES_FIELD_KEY)
    if raw is None:
        return 1
    match = _LEADING_INT.match(str(raw))
    if not match:
        return 1
    value = int(match.group(1))
    return value if value >= 1 else 1


def _blank_if_none(value):
    return "" if value is None else value


class Guest(BaseModel):
    id: int
    name: str
    phone: str
    attending: bool = False
    responses: Dict[str, str] = Field(default_factory=dict)
    table_no: str = ""
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("responses", mode="before")
    @classmethod
    def _stringify_responses(cls, value):
        if not value:
            return {}
        return {str(k): "" if v is None else str(v) for k, v in dict(value).items()}

    @field_validator("table_no", "phone", mode="before")
    @classmethod
    def _coerce_text(cls, value):
        return str(_blank_if_none(value))

    @property
    def party_size(self) -> int:
        return compute_party_size(self.responses)

    @property
    def display_name(self) -> str:
        size = self.party_size
        if size >= 2:
            return f"{self.name} 携亲朋{size}位"
        return self.name


class InvitationField(BaseModel):
    id: int
    label: str
    field_key: str
    field_type: Literal["text", "textarea", "select"] = "text"
    options: str = ""
    required: bool = False

    @property
    def option_list(self) -> List[str]:
        return [opt.strip() for opt in self.options.split(",") if opt.strip()]


class InvitationSection(BaseModel):
    id: int
    sort_order: int = 0
    title: str = ""
    body: str = ""
    image_url: str = ""


class Admin(BaseModel):
    id: int
    username: str
    password_hash: str
    created_at: datetime = Field(default_factory=datetime.utcnow)


class Table(BaseModel):
    id: int
    table_no: str
    nickname: str = ""
    seats: int = Field(0, ge=0)
    preference: str = ""
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    @field_validator("table_no", mode="before")
    @classmethod
    def _coerce_table_no(cls, value):
        return str(_blank_if_none(value))


class Checkin(BaseModel):
    id: int
    guest_id: int
    actual_attendees: int = Field(1, ge=1)
    checked_in_at: datetime = Field(default_factory=datetime.utcnow)


class Prize(BaseModel):
    id: int
    name: str
    quantity: int = Field(1, ge=1)


class Winner(BaseModel):
    id: int
    prize_id: int
    guest_id: int
    created_at: datetime = Field(default_factory=datetime.utcnow)


class LedgerEntry(BaseModel):
    id: int
    amount: Decimal = Field(..., gt=0)
    direction: Literal["income", "expense"]
    category: str
    purpose: str
    payer: str
    payee: str = ""
    method: str = ""
    note: str = ""
    occurred_at: date
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class Store(BaseModel):
    """Aggregate document persisted as a whole"""

    model_config = ConfigDict(extra="ignore")

    admins: List[Admin] = Field(default_factory=list)
    invitation_sections: List[InvitationSection] = Field(default_factory=list)
    invitation_fields: List[InvitationField] = Field(default_factory=list)
    guests: List[Guest] = Field(default_factory=list)
    tables: List[Table] = Field(default_factory=list)
    checkins: List[Checkin] = Field(default_factory=list)
    prizes: List[Prize] = Field(default_factory=list)
    winners: List[Winner] = Field(default_factory=list)
    ledger: List[LedgerEntry] = Field(default_factory=list)
    settings: Dict[str, str] = Field(default_factory=dict)
    counters: Dict[str, int] = Field(default_factory=dict)
