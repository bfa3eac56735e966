"""
Guest check-in service
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from wedding_manager.schemas.store import Checkin, Guest
from wedding_manager.services.errors import NotFound, ValidationError
from wedding_manager.services.guest_service import GuestRegistry
from wedding_manager.services.repositories import StoreUnitOfWork
from wedding_manager.services.seating_service import table_label

logger = logging.getLogger(__name__)

PHONE_LIKE = re.compile(r"^\d{6,}$")
_WHITESPACE = re.compile(r"\s+")

CHECKED_IN = "checked_in"
NOT_FOUND = "not_found"
AMBIGUOUS = "ambiguous"


class CheckinResult(BaseModel):
    """Outcome of a check-in lookup.

    ``not_found`` and ``ambiguous`` are prompts, not failures: nothing was
    written and the caller may retry or start the new-guest flow.
    """

    status: str
    message: str
    needs_confirmation: bool = False
    candidates: int = 0
    guest_id: Optional[int] = None
    name: Optional[str] = None
    table_no: Optional[str] = None
    actual_attendees: Optional[int] = None
    checked_in_at: Optional[str] = None

    @property
    def checked_in(self) -> bool:
        return self.status == CHECKED_IN


def coerce_attendees(value) -> int:
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError("实到人数必须是正整数")
    if count < 1:
        raise ValidationError("实到人数必须是正整数")
    return count


class CheckInResolver:
    """Service for handling on-site guest check-ins"""

    def __init__(self, uow: StoreUnitOfWork, registry: Optional[GuestRegistry] = None):
        self.uow = uow
        self.registry = registry or GuestRegistry(uow)

    def checkin_for(self, guest_id: int) -> Optional[Checkin]:
        return next((c for c in self.uow.checkins.items if c.guest_id == guest_id), None)

    def upsert_checkin(self, guest_id: int, actual_attendees: int) -> Checkin:
        """One record per guest; a repeat check-in replaces count and time"""
        checkin = self.checkin_for(guest_id)
        now = datetime.utcnow()
        if checkin is not None:
            checkin.actual_attendees = actual_attendees
            checkin.checked_in_at = now
            return checkin
        checkin = Checkin(
            id=self.uow.checkins.next_id(),
            guest_id=guest_id,
            actual_attendees=actual_attendees,
            checked_in_at=now,
        )
        self.uow.checkins.add(checkin)
        return checkin

    def resolve_lookup(
        self,
        lookup: Optional[str],
        confirm_attending: bool,
        actual_attendees=1,
    ) -> CheckinResult:
        """Check a guest in by name or phone"""
        raw = (lookup or "").strip()
        if not raw or not confirm_attending:
            raise ValidationError("请输入姓名或手机号，并确认出席")
        attendees = coerce_attendees(actual_attendees)

        normalized = _WHITESPACE.sub("", raw)
        phone_like = bool(PHONE_LIKE.match(normalized))

        candidates: Dict[int, Guest] = {}
        by_phone = self.registry.find_by_phone(normalized)
        if by_phone is not None:
            candidates[by_phone.id] = by_phone
        for guest in self.registry.find_by_name(raw):
            candidates.setdefault(guest.id, guest)

        if not candidates:
            logger.info(f"Check-in lookup '{raw}' matched no guest")
            return CheckinResult(
                status=NOT_FOUND,
                message=f"未在登记名单中找到「{raw}」，请重新输入，或以新来宾身份签到",
                needs_confirmation=True,
            )
        if len(candidates) > 1:
            logger.info(f"Check-in lookup '{raw}' matched {len(candidates)} guests")
            return CheckinResult(
                status=AMBIGUOUS,
                message=f"找到{len(candidates)}位同名来宾，请输入手机号重新查询，或以新来宾身份签到",
                needs_confirmation=True,
                candidates=len(candidates),
            )

        guest = next(iter(candidates.values()))
        if phone_like:
            guest = self.registry.update(guest.id, phone=normalized, attending=True)
        else:
            guest = self.registry.update(guest.id, name=raw, attending=True)
        return self._complete(guest, attendees)

    def check_in_new_guest(
        self,
        name: Optional[str],
        phone: Optional[str],
        confirm_attending: bool,
        actual_attendees=1,
    ) -> CheckinResult:
        """Explicit "I am not on the list" path: register by phone, then check in"""
        if not (name or "").strip() or not (phone or "").strip() or not confirm_attending:
            raise ValidationError("请填写姓名、手机号，并确认出席")
        attendees = coerce_attendees(actual_attendees)

        existing = self.registry.find_by_phone(phone)
        responses = None if existing else {"attendees": str(attendees)}
        guest = self.registry.upsert_by_phone(name, phone, True, responses)
        return self._complete(guest, attendees)

    def manual_checkin(
        self,
        name: Optional[str],
        phone: Optional[str] = None,
        table_no: Optional[str] = None,
        actual_attendees=1,
    ) -> CheckinResult:
        """Admin check-in: match by phone, then exact name, else create the guest"""
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name:
            raise ValidationError("请填写姓名")
        attendees = coerce_attendees(actual_attendees)
        table_no = (table_no or "").strip() or None

        guest = self.registry.find_by_phone(phone) if phone else None
        if guest is None:
            matches = self.registry.find_by_name(name)
            guest = matches[0] if matches else None

        if guest is not None:
            guest = self.registry.update(
                guest.id, name=name, phone=phone or None, attending=True, table_no=table_no
            )
        else:
            guest = self.registry.create(
                name, phone, attending=True, responses={"attendees": str(attendees)}, table_no=table_no
            )
        return self._complete(guest, attendees)

    def update_checkin(self, guest_id: int, actual_attendees) -> Checkin:
        checkin = self.checkin_for(guest_id)
        if checkin is None:
            raise NotFound("签到记录", guest_id)
        checkin.actual_attendees = coerce_attendees(actual_attendees)
        logger.info(f"Check-in of guest {guest_id} edited: {checkin.actual_attendees} attendee(s)")
        return checkin

    def cancel_checkin(self, guest_id: int) -> Checkin:
        checkin = self.checkin_for(guest_id)
        if checkin is None:
            raise NotFound("签到记录", guest_id)
        self.uow.checkins.remove(checkin.id)
        logger.info(f"Check-in of guest {guest_id} cancelled")
        return checkin

    def _complete(self, guest: Guest, attendees: int) -> CheckinResult:
        checkin = self.upsert_checkin(guest.id, attendees)
        logger.info(f"Guest {guest.id} checked in with {attendees} attendee(s)")
        return CheckinResult(
            status=CHECKED_IN,
            message="签到成功",
            guest_id=guest.id,
            name=guest.name,
            table_no=table_label(guest.table_no),
            actual_attendees=checkin.actual_attendees,
            checked_in_at=checkin.checked_in_at.isoformat(),
        )

    def checkin_overview(self) -> Dict:
        """Checked-in guests (latest first) and attendance totals"""
        guests = {g.id: g for g in self.uow.guests.items}
        rows: List[Dict] = []
        for checkin in sorted(self.uow.checkins.items, key=lambda c: c.checked_in_at, reverse=True):
            guest = guests.get(checkin.guest_id)
            if guest is None:
                continue
            rows.append({
                "guest_id": guest.id,
                "name": guest.display_name,
                "phone": guest.phone,
                "table_no": table_label(guest.table_no),
                "party_size": guest.party_size,
                "actual_attendees": checkin.actual_attendees,
                "checked_in_at": checkin.checked_in_at.isoformat(),
            })
        attending = [g for g in guests.values() if g.attending]
        return {
            "checkins": rows,
            "expected_guests": len(attending),
            "expected_people": sum(g.party_size for g in attending),
            "checked_in_guests": len(rows),
            "actual_people": sum(r["actual_attendees"] for r in rows),
        }
