"""
Wedding ledger: income and expense entries
"""

import logging
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from wedding_manager.schemas.store import LEDGER_CATEGORIES, LEDGER_DIRECTIONS, LedgerEntry
from wedding_manager.services.errors import NotFound, ValidationError
from wedding_manager.services.repositories import StoreUnitOfWork

logger = logging.getLogger(__name__)


def _parse_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError("请填写有效金额")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError("金额必须大于0")
    try:
        amount = amount.quantize(Decimal("0.01"))
    except InvalidOperation:
        # more digits than the decimal context holds
        raise ValidationError("金额过大")
    if amount <= 0:
        raise ValidationError("金额必须大于0")
    return amount


def _parse_date(value) -> date:
    if isinstance(value, date):
        return value
    if not value:
        return date.today()
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError("日期格式应为 YYYY-MM-DD")


class Ledger:
    def __init__(self, uow: StoreUnitOfWork):
        self.uow = uow

    def get(self, entry_id: int) -> LedgerEntry:
        entry = self.uow.ledger.get(entry_id)
        if entry is None:
            raise NotFound("账目", entry_id)
        return entry

    def _validated(self, data: Dict) -> Dict:
        if data.get("amount") in (None, ""):
            raise ValidationError("请填写金额")
        amount = _parse_amount(data.get("amount"))
        direction = (data.get("direction") or "").strip()
        if direction not in LEDGER_DIRECTIONS:
            raise ValidationError("收支类型只能是 income 或 expense")
        category = (data.get("category") or "").strip()
        if category not in LEDGER_CATEGORIES:
            raise ValidationError(f"未知分类：{category}", details={"allowed": list(LEDGER_CATEGORIES)})
        purpose = (data.get("purpose") or "").strip()
        payer = (data.get("payer") or "").strip()
        if not purpose or not payer:
            raise ValidationError("请填写用途和付款人")
        return {
            "amount": amount,
            "direction": direction,
            "category": category,
            "purpose": purpose,
            "payer": payer,
            "payee": (data.get("payee") or "").strip(),
            "method": (data.get("method") or "").strip(),
            "note": (data.get("note") or "").strip(),
            "occurred_at": _parse_date(data.get("occurred_at")),
        }

    def create(self, data: Dict) -> LedgerEntry:
        values = self._validated(data)
        entry = LedgerEntry(id=self.uow.ledger.next_id(), **values)
        self.uow.ledger.add(entry)
        logger.info(f"Ledger entry {entry.id} added: {entry.direction} {entry.amount}")
        return entry

    def update(self, entry_id: int, data: Dict) -> LedgerEntry:
        entry = self.get(entry_id)
        merged = entry.model_dump()
        merged.update({k: v for k, v in data.items() if v is not None})
        values = self._validated(merged)
        for key, value in values.items():
            setattr(entry, key, value)
        entry.updated_at = datetime.utcnow()
        logger.info(f"Ledger entry {entry.id} updated")
        return entry

    def delete(self, entry_id: int) -> LedgerEntry:
        entry = self.get(entry_id)
        self.uow.ledger.remove(entry.id)
        logger.info(f"Ledger entry {entry.id} deleted")
        return entry

    def list_entries(
        self,
        direction: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[LedgerEntry]:
        """Entries newest first, optionally filtered"""
        entries = [
            e for e in self.uow.ledger.items
            if (not direction or e.direction == direction)
            and (not category or e.category == category)
        ]
        return sorted(entries, key=lambda e: (e.occurred_at, e.id), reverse=True)

    def summary(self) -> Dict:
        income = Decimal("0")
        expense = Decimal("0")
        by_category: Dict[str, Dict[str, Decimal]] = {}
        for entry in self.uow.ledger.items:
            bucket = by_category.setdefault(entry.category, {"income": Decimal("0"), "expense": Decimal("0")})
            bucket[entry.direction] += entry.amount
            if entry.direction == "income":
                income += entry.amount
            else:
                expense += entry.amount
        return {
            "income": str(income),
            "expense": str(expense),
            "balance": str(income - expense),
            "by_category": {
                category: {k: str(v) for k, v in totals.items()}
                for category, totals in by_category.items()
            },
        }
