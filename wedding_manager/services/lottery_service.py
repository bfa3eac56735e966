"""
Prize lottery service

A guest can win at most once across the whole lottery. Only checked-in guests
are eligible.
"""

import logging
import random
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence, TypeVar

from wedding_manager.schemas.store import Guest, Prize, Winner
from wedding_manager.services.errors import (
    NoEligibleGuests,
    PrizeExhausted,
    PrizeNotFound,
    ValidationError,
)
from wedding_manager.services.repositories import StoreUnitOfWork

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RandomSource(Protocol):
    def choice(self, seq: Sequence[T]) -> T: ...


def default_random_source(seed: Optional[int] = None) -> RandomSource:
    """Seeded PRNG when a seed is configured, OS entropy otherwise"""
    if seed is not None:
        return random.Random(seed)
    return random.SystemRandom()


class LotteryEngine:
    def __init__(self, uow: StoreUnitOfWork, rng: Optional[RandomSource] = None):
        self.uow = uow
        self.rng = rng or default_random_source()

    def get_prize(self, prize_id) -> Prize:
        try:
            key = int(prize_id)
        except (TypeError, ValueError):
            raise PrizeNotFound(prize_id)
        prize = self.uow.prizes.get(key)
        if prize is None:
            raise PrizeNotFound(prize_id)
        return prize

    def add_prize(self, name: str, quantity=1) -> Prize:
        name = (name or "").strip()
        if not name:
            raise ValidationError("请填写奖品名称")
        try:
            quantity = int(quantity or 1)
        except (TypeError, ValueError):
            raise ValidationError("奖品数量必须是正整数")
        if quantity < 1:
            raise ValidationError("奖品数量必须是正整数")
        prize = Prize(id=self.uow.prizes.next_id(), name=name, quantity=quantity)
        self.uow.prizes.add(prize)
        logger.info(f"Prize {prize.id} '{name}' x{quantity} added")
        return prize

    def delete_prize(self, prize_id) -> Prize:
        """Remove a prize together with its winners"""
        prize = self.get_prize(prize_id)
        self.uow.prizes.remove(prize.id)
        removed = self.uow.winners.remove_where(lambda w: w.prize_id == prize.id)
        logger.info(f"Prize {prize.id} deleted ({removed} winner(s) removed)")
        return prize

    def winners_of(self, prize_id: int) -> List[Winner]:
        return [w for w in self.uow.winners.items if w.prize_id == prize_id]

    def eligible_pool(self) -> List[Guest]:
        """Checked-in guests who have not won any prize yet"""
        checked_in = {c.guest_id for c in self.uow.checkins.items}
        already_won = {w.guest_id for w in self.uow.winners.items}
        return [
            g for g in self.uow.guests.items
            if g.id in checked_in and g.id not in already_won
        ]

    def draw(self, prize_id) -> Dict:
        prize = self.get_prize(prize_id)
        if len(self.winners_of(prize.id)) >= prize.quantity:
            raise PrizeExhausted(prize.name, prize.quantity)

        pool = self.eligible_pool()
        if not pool:
            raise NoEligibleGuests()

        guest = self.rng.choice(pool)
        winner = Winner(
            id=self.uow.winners.next_id(),
            prize_id=prize.id,
            guest_id=guest.id,
            created_at=datetime.utcnow(),
        )
        self.uow.winners.add(winner)
        logger.info(f"Draw for prize {prize.id}: guest {guest.id} wins ({len(pool)} eligible)")
        return {
            "winner_id": winner.id,
            "prize_id": prize.id,
            "prize_name": prize.name,
            "guest_id": guest.id,
            "guest_name": guest.name,
            "table_no": guest.table_no,
            "remaining": prize.quantity - len(self.winners_of(prize.id)),
            "created_at": winner.created_at.isoformat(),
        }

    def reset(self) -> int:
        removed = self.uow.winners.clear()
        logger.warning(f"Lottery reset: {removed} winner(s) cleared")
        return removed

    def prize_summary(self) -> List[Dict]:
        summary = []
        for prize in self.uow.prizes.items:
            drawn = len(self.winners_of(prize.id))
            summary.append({
                "id": prize.id,
                "name": prize.name,
                "quantity": prize.quantity,
                "drawn": drawn,
                "remaining": max(prize.quantity - drawn, 0),
            })
        return summary

    def winners_summary(self) -> List[Dict]:
        prizes = {p.id: p for p in self.uow.prizes.items}
        guests = {g.id: g for g in self.uow.guests.items}
        rows = []
        for winner in self.uow.winners.items:
            prize = prizes.get(winner.prize_id)
            guest = guests.get(winner.guest_id)
            rows.append({
                "id": winner.id,
                "prize_id": winner.prize_id,
                "prize_name": prize.name if prize else "-",
                "guest_id": winner.guest_id,
                "guest_name": guest.name if guest else "-",
                "created_at": winner.created_at.isoformat(),
            })
        return rows
