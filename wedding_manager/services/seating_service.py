"""
Table allocation and seat-capacity service
"""

import logging
import re
from datetime import datetime
from typing import Dict, List, Optional

from wedding_manager.schemas.store import UNASSIGNED_TABLE_LABEL, Guest, Table
from wedding_manager.services.errors import CapacityExceeded, NotFound, ValidationError
from wedding_manager.services.repositories import StoreUnitOfWork

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def natural_key(value: str):
    """Sort key that compares digit runs numerically, so "2" sorts before "10"."""
    parts = _DIGITS.split((value or "").strip().casefold())
    return [(0, int(part), "") if part.isdigit() else (1, 0, part) for part in parts if part]


def table_label(table_no: str) -> str:
    return table_no or UNASSIGNED_TABLE_LABEL


class TableAllocator:
    """Service for table seating operations.

    ``Guest.table_no`` holds the table's display number rather than its id; every
    lookup by that string goes through ``by_table_no``.
    """

    def __init__(self, uow: StoreUnitOfWork):
        self.uow = uow

    def by_table_no(self, table_no: Optional[str]) -> Optional[Table]:
        key = (table_no or "").strip()
        if not key:
            return None
        return next((t for t in self.uow.tables.items if t.table_no == key), None)

    def get(self, table_id: int) -> Table:
        table = self.uow.tables.get(table_id)
        if table is None:
            raise NotFound("桌位", table_id)
        return table

    def guests_at(self, table_no: str, exclude_guest_id: Optional[int] = None) -> List[Guest]:
        return [
            g for g in self.uow.guests.items
            if table_no and g.table_no == table_no and g.id != exclude_guest_id
        ]

    def occupied_seats(self, table_no: str, exclude_guest_id: Optional[int] = None) -> int:
        return sum(g.party_size for g in self.guests_at(table_no, exclude_guest_id))

    def validate_table_assignment(
        self,
        table_no: Optional[str],
        proposed_party_size: int,
        exclude_guest_id: Optional[int] = None,
    ) -> str:
        """Return the table_no to store for a guest, or raise CapacityExceeded.

        A table_no that matches no table resolves to "" (unassigned).
        """
        table = self.by_table_no(table_no)
        if table is None:
            return ""
        if table.seats > 0:
            occupied = self.occupied_seats(table.table_no, exclude_guest_id)
            if occupied + proposed_party_size > table.seats:
                logger.info(f"Rejected {proposed_party_size} seat(s) at table {table.table_no}: {occupied}/{table.seats} taken")
                raise CapacityExceeded(table.table_no, table.seats, occupied, proposed_party_size)
        return table.table_no

    def assign_guest(self, guest_id: int, table_no: Optional[str]) -> Guest:
        """Move one guest to a table (or unassign with an empty table_no)"""
        guest = self.uow.guests.get(guest_id)
        if guest is None:
            raise NotFound("来宾", guest_id)
        guest.table_no = self.validate_table_assignment(table_no, guest.party_size, guest.id)
        guest.updated_at = datetime.utcnow()
        return guest

    def upsert_table(
        self,
        table_no: str,
        nickname: str = "",
        seats: int = 0,
        preference: str = "",
    ) -> Table:
        """Create a table, or update the one that already has this table_no"""
        table_no = (table_no or "").strip()
        if not table_no:
            raise ValidationError("请填写桌号")
        seats = _coerce_seats(seats)

        table = self.by_table_no(table_no)
        if table is not None:
            self._check_seats_cover_guests(table.table_no, seats)
            table.nickname = nickname or ""
            table.seats = seats
            table.preference = preference or ""
            table.updated_at = datetime.utcnow()
            logger.info(f"Table {table_no} updated ({seats} seats)")
            return table

        table = Table(
            id=self.uow.tables.next_id(),
            table_no=table_no,
            nickname=nickname or "",
            seats=seats,
            preference=preference or "",
        )
        self.uow.tables.add(table)
        logger.info(f"Table {table_no} created ({seats} seats)")
        return table

    def update_table(
        self,
        table_id: int,
        table_no: str,
        nickname: str = "",
        seats: int = 0,
        preference: str = "",
    ) -> Table:
        """Edit a table by id; a new table_no is cascaded to its guests"""
        table = self.get(table_id)
        new_no = (table_no or "").strip()
        if not new_no:
            raise ValidationError("请填写桌号")

        other = self.by_table_no(new_no)
        if other is not None and other.id != table.id:
            raise ValidationError(f"桌号 {new_no} 已存在")

        old_no = table.table_no
        seats = _coerce_seats(seats)
        self._check_seats_cover_guests(old_no, seats)

        if new_no != old_no:
            moved = self._repoint_guests(old_no, new_no)
            logger.info(f"Table {old_no} renamed to {new_no}; {moved} guest(s) moved")

        table.table_no = new_no
        table.nickname = nickname or ""
        table.seats = seats
        table.preference = preference or ""
        table.updated_at = datetime.utcnow()
        return table

    def delete_table(self, table_id: int) -> Table:
        table = self.get(table_id)
        cleared = self._repoint_guests(table.table_no, "")
        self.uow.tables.remove(table.id)
        logger.info(f"Table {table.table_no} deleted; {cleared} guest(s) unassigned")
        return table

    def rename_or_delete(self, table_id: int, new_table_no: Optional[str]) -> Optional[Table]:
        """Rename a table (cascading to guests), or delete it when new_table_no is None"""
        if new_table_no is None:
            self.delete_table(table_id)
            return None
        table = self.get(table_id)
        return self.update_table(table_id, new_table_no, table.nickname, table.seats, table.preference)

    def _check_seats_cover_guests(self, table_no: str, seats: int) -> None:
        """A limited table may not shrink below the seats its guests already take"""
        if seats <= 0:
            return
        occupied = self.occupied_seats(table_no)
        if occupied > seats:
            logger.info(f"Rejected resizing table {table_no} to {seats} seat(s): {occupied} taken")
            raise CapacityExceeded(table_no, seats, occupied, 0)

    def _repoint_guests(self, old_no: str, new_no: str) -> int:
        moved = 0
        now = datetime.utcnow()
        for guest in self.uow.guests.items:
            if old_no and guest.table_no == old_no:
                guest.table_no = new_no
                guest.updated_at = now
                moved += 1
        return moved

    def sorted_tables(self) -> List[Table]:
        return sorted(self.uow.tables.items, key=lambda t: natural_key(t.table_no))

    def seating_chart(self) -> List[Dict]:
        """Occupancy of every table plus the unassigned attending guests"""
        chart = []
        for table in self.sorted_tables():
            guests = self.guests_at(table.table_no)
            occupied = sum(g.party_size for g in guests)
            chart.append({
                "id": table.id,
                "table_no": table.table_no,
                "nickname": table.nickname,
                "seats": table.seats,
                "preference": table.preference,
                "occupied": occupied,
                "available_seats": max(table.seats - occupied, 0) if table.seats > 0 else None,
                "guests": [
                    {"id": g.id, "name": g.display_name, "party_size": g.party_size}
                    for g in guests
                ],
            })
        return chart

    def unassigned_guests(self) -> List[Guest]:
        return [g for g in self.uow.guests.items if g.attending and not self.by_table_no(g.table_no)]

    def seat_cards(self) -> List[Dict]:
        """One card per attending guest, ordered by table"""
        guests = [g for g in self.uow.guests.items if g.attending]
        guests.sort(key=lambda g: (not g.table_no, natural_key(g.table_no), g.name))
        cards = []
        for g in guests:
            table = self.by_table_no(g.table_no)
            cards.append({
                "guest_id": g.id,
                "name": g.display_name,
                "table_no": table_label(g.table_no),
                "nickname": table.nickname if table else "",
            })
        return cards


def _coerce_seats(seats) -> int:
    try:
        value = int(seats or 0)
    except (TypeError, ValueError):
        raise ValidationError("座位数必须是整数")
    if value < 0:
        raise ValidationError("座位数不能为负数")
    return value
