"""
Guest registry: RSVP de-duplication by phone, admin edits and party sizes
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from wedding_manager.schemas.store import (
    Guest,
    InvitationField,
    compute_party_size,
)
from wedding_manager.services.errors import NotFound, ValidationError
from wedding_manager.services.repositories import StoreUnitOfWork
from wedding_manager.services.seating_service import TableAllocator, table_label

logger = logging.getLogger(__name__)


class GuestRegistry:
    """Create, update and delete guest records.

    Phone is the natural key for self-service RSVPs. Lookups go through two
    indices (phone -> id, name -> [ids]) that are kept in step with every
    mutation made through this registry.
    """

    def __init__(self, uow: StoreUnitOfWork, allocator: Optional[TableAllocator] = None):
        self.uow = uow
        self.allocator = allocator or TableAllocator(uow)
        self._by_phone: Dict[str, int] = {}
        self._by_name: Dict[str, List[int]] = defaultdict(list)
        for guest in uow.guests.items:
            self._index(guest)

    # -------- indices --------

    def _index(self, guest: Guest) -> None:
        if guest.phone:
            self._by_phone.setdefault(guest.phone, guest.id)
        self._by_name[guest.name].append(guest.id)

    def _unindex(self, guest: Guest) -> None:
        if self._by_phone.get(guest.phone) == guest.id:
            del self._by_phone[guest.phone]
            # another record may still carry this phone (legacy data)
            for other in self.uow.guests.items:
                if other.id != guest.id and other.phone == guest.phone:
                    self._by_phone[guest.phone] = other.id
                    break
        ids = self._by_name.get(guest.name, [])
        if guest.id in ids:
            ids.remove(guest.id)
        if not ids:
            self._by_name.pop(guest.name, None)

    # -------- lookups --------

    def get(self, guest_id: int) -> Guest:
        guest = self.uow.guests.get(guest_id)
        if guest is None:
            raise NotFound("来宾", guest_id)
        return guest

    def find_by_phone(self, phone: Optional[str]) -> Optional[Guest]:
        guest_id = self._by_phone.get((phone or "").strip())
        return self.uow.guests.get(guest_id) if guest_id is not None else None

    def find_by_name(self, name: Optional[str]) -> List[Guest]:
        ids = self._by_name.get((name or "").strip(), [])
        return [g for g in (self.uow.guests.get(i) for i in ids) if g is not None]

    # -------- mutations --------

    def upsert_by_phone(
        self,
        name: str,
        phone: str,
        attending: bool,
        responses: Optional[Dict[str, str]] = None,
        table_no: Optional[str] = None,
    ) -> Guest:
        """Create a guest, or overwrite the one that already has this phone.

        ``responses=None`` keeps the stored responses; ``table_no=None`` keeps the
        stored table. A given table_no is checked against the table's capacity.
        """
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name or not phone:
            raise ValidationError("请填写姓名和手机号")

        existing = self.find_by_phone(phone)
        if responses is None:
            responses = dict(existing.responses) if existing else {}
        party_size = compute_party_size(responses)

        resolved_table = None
        if table_no is not None:
            resolved_table = self.allocator.validate_table_assignment(
                table_no, party_size, existing.id if existing else None
            )

        now = datetime.utcnow()
        if existing is not None:
            self._unindex(existing)
            existing.name = name
            existing.attending = bool(attending)
            existing.responses = dict(responses)
            if resolved_table is not None:
                existing.table_no = resolved_table
            existing.updated_at = now
            self._index(existing)
            self._warn_if_overbooked(existing)
            logger.info(f"Guest {existing.id} updated by phone match")
            return existing

        return self._append(name, phone, attending, responses, resolved_table or "")

    def create(
        self,
        name: str,
        phone: str = "",
        attending: bool = True,
        responses: Optional[Dict[str, str]] = None,
        table_no: Optional[str] = None,
    ) -> Guest:
        """Append a new guest; phone may be empty (walk-in guests)"""
        name = (name or "").strip()
        phone = (phone or "").strip()
        if not name:
            raise ValidationError("请填写姓名")
        if phone and self.find_by_phone(phone) is not None:
            raise ValidationError(f"手机号 {phone} 已登记")
        responses = dict(responses or {})
        resolved_table = self.allocator.validate_table_assignment(
            table_no, compute_party_size(responses)
        )
        return self._append(name, phone, attending, responses, resolved_table)

    def _append(self, name, phone, attending, responses, table_no) -> Guest:
        guest = Guest(
            id=self.uow.guests.next_id(),
            name=name,
            phone=phone,
            attending=bool(attending),
            responses=dict(responses),
            table_no=table_no,
            updated_at=datetime.utcnow(),
        )
        self.uow.guests.add(guest)
        self._index(guest)
        logger.info(f"Guest {guest.id} created")
        return guest

    def update(
        self,
        guest_id: int,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        attending: Optional[bool] = None,
        responses: Optional[Dict[str, str]] = None,
        table_no: Optional[str] = None,
    ) -> Guest:
        """Edit a guest by id. Fields left as None are unchanged.

        Changing the table or the party size re-checks the table's capacity; on
        any rejection the guest is left untouched.
        """
        guest = self.get(guest_id)

        new_name = (name or "").strip() or guest.name
        new_phone = (phone or "").strip() or guest.phone
        if new_phone != guest.phone:
            holder = self.find_by_phone(new_phone)
            if holder is not None and holder.id != guest.id:
                raise ValidationError(f"手机号 {new_phone} 已被来宾 {holder.name} 使用")

        new_responses = dict(responses) if responses is not None else dict(guest.responses)
        new_table = guest.table_no
        if table_no is not None or responses is not None:
            target = table_no if table_no is not None else guest.table_no
            new_table = self.allocator.validate_table_assignment(
                target, compute_party_size(new_responses), guest.id
            )

        self._unindex(guest)
        guest.name = new_name
        guest.phone = new_phone
        if attending is not None:
            guest.attending = bool(attending)
        guest.responses = new_responses
        guest.table_no = new_table
        guest.updated_at = datetime.utcnow()
        self._index(guest)
        logger.info(f"Guest {guest.id} updated")
        return guest

    def delete(self, guest_id: int) -> Guest:
        """Remove a guest and its check-in record"""
        guest = self.get(guest_id)
        self._unindex(guest)
        self.uow.guests.remove(guest.id)
        removed = self.uow.checkins.remove_where(lambda c: c.guest_id == guest.id)
        logger.info(f"Guest {guest.id} deleted ({removed} check-in record(s) removed)")
        return guest

    def _warn_if_overbooked(self, guest: Guest) -> None:
        table = self.allocator.by_table_no(guest.table_no)
        if table is None or table.seats <= 0:
            return
        occupied = self.allocator.occupied_seats(table.table_no)
        if occupied > table.seats:
            logger.warning(f"Table {table.table_no} is over capacity after RSVP of guest {guest.id}: {occupied}/{table.seats}")

    # -------- custom fields --------

    @staticmethod
    def collect_responses(
        fields: Iterable[InvitationField],
        submitted: Optional[Dict[str, Any]],
        enforce_required: bool = False,
    ) -> Dict[str, str]:
        """Keep only schema-defined keys; missing ones become ""."""
        submitted = submitted or {}
        responses: Dict[str, str] = {}
        missing = []
        for field in fields:
            value = submitted.get(field.field_key)
            value = "" if value is None else str(value).strip()
            responses[field.field_key] = value
            if field.required and not value:
                missing.append(field.label)
        if enforce_required and missing:
            raise ValidationError(f"请填写：{'、'.join(missing)}", details={"missing": missing})
        return responses

    # -------- views --------

    def list_rows(self) -> List[Dict]:
        """Guest rows for the admin list"""
        checkins = {c.guest_id: c for c in self.uow.checkins.items}
        rows = []
        for guest in self.uow.guests.items:
            checkin = checkins.get(guest.id)
            rows.append({
                "id": guest.id,
                "name": guest.name,
                "display_name": guest.display_name,
                "phone": guest.phone,
                "attending": guest.attending,
                "party_size": guest.party_size,
                "responses": guest.responses,
                "table_no": guest.table_no,
                "table_label": table_label(guest.table_no),
                "checked_in": checkin is not None,
                "actual_attendees": checkin.actual_attendees if checkin else None,
                "updated_at": guest.updated_at.isoformat(),
            })
        return rows
