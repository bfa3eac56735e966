"""
Tests for the prize lottery
"""

import random

import pytest

from wedding_manager.services.checkin_service import CheckInResolver
from wedding_manager.services.errors import (
    NoEligibleGuests,
    PrizeExhausted,
    PrizeNotFound,
    ValidationError,
)
from wedding_manager.services.guest_service import GuestRegistry
from wedding_manager.services.lottery_service import LotteryEngine, default_random_source

class FirstChoice:
    """Deterministic picker: always the first eligible guest"""

    def choice(self, seq):
        return seq[0]

@pytest.fixture
def party(open_uow):
    """Four guests, three of them checked in"""
    with open_uow() as uow:
        registry = GuestRegistry(uow)
        resolver = CheckInResolver(uow, registry)
        for i, name in enumerate(["甲", "乙", "丙", "丁"], start=1):
            registry.create(name, f"1380000000{i}")
        for phone in ("13800000001", "13800000002", "13800000003"):
            resolver.resolve_lookup(phone, True)
    return open_uow

def test_add_prize_validation(party):
    with party() as uow:
        lottery = LotteryEngine(uow)
        assert lottery.add_prize("红包", 3).quantity == 3
        assert lottery.add_prize("抱枕", None).quantity == 1
        with pytest.raises(ValidationError):
            lottery.add_prize("", 1)
        with pytest.raises(ValidationError):
            lottery.add_prize("红包", -2)
        with pytest.raises(ValidationError):
            lottery.add_prize("红包", "many")

def test_only_checked_in_guests_are_eligible(party):
    with party() as uow:
        names = [g.name for g in LotteryEngine(uow).eligible_pool()]
        assert names == ["甲", "乙", "丙"]

def test_draw_records_winner(party):
    with party() as uow:
        lottery = LotteryEngine(uow, FirstChoice())
        prize = lottery.add_prize("红包", 2)
        result = lottery.draw(prize.id)
        assert result["guest_name"] == "甲"
        assert result["prize_name"] == "红包"
        assert result["remaining"] == 1

    with party(read_only=True) as uow:
        winners = uow.winners.all()
        assert len(winners) == 1
        assert winners[0].guest_id == 1

def test_guest_wins_at_most_once_across_prizes(party):
    with party() as uow:
        lottery = LotteryEngine(uow, FirstChoice())
        first = lottery.add_prize("一等奖", 1)
        second = lottery.add_prize("二等奖", 5)
        lottery.draw(first.id)
        drawn = [lottery.draw(second.id)["guest_name"] for _ in range(2)]
        assert drawn == ["乙", "丙"]
        assert lottery.eligible_pool() == []

def test_prize_exhausted(party):
    """A prize with quantity 1 and one winner refuses another draw"""
    with party() as uow:
        lottery = LotteryEngine(uow, FirstChoice())
        prize = lottery.add_prize("一等奖", 1)
        lottery.draw(prize.id)

    with pytest.raises(PrizeExhausted) as exc_info:
        with party() as uow:
            LotteryEngine(uow, FirstChoice()).draw(1)
    assert exc_info.value.message == "奖品已抽完"

    with party(read_only=True) as uow:
        assert len(uow.winners) == 1

def test_draw_unknown_prize(party):
    with party() as uow:
        lottery = LotteryEngine(uow)
        with pytest.raises(PrizeNotFound):
            lottery.draw(99)
        with pytest.raises(PrizeNotFound):
            lottery.draw("abc")

def test_no_eligible_guests(open_uow):
    with open_uow() as uow:
        lottery = LotteryEngine(uow)
        prize = lottery.add_prize("红包", 1)
        with pytest.raises(NoEligibleGuests):
            lottery.draw(prize.id)
        assert len(uow.winners) == 0

def test_seeded_draws_are_reproducible(party):
    with party() as uow:
        LotteryEngine(uow).add_prize("红包", 3)

    picks = []
    for _ in range(2):
        with party(read_only=True) as uow:
            lottery = LotteryEngine(uow, random.Random(2024))
            picks.append([lottery.draw(1)["guest_id"] for _ in range(3)])

    assert picks[0] == picks[1]
    assert sorted(picks[0]) == [1, 2, 3]

def test_default_random_source():
    assert isinstance(default_random_source(7), random.Random)
    assert isinstance(default_random_source(), random.SystemRandom)

def test_reset_clears_winners_only(party):
    with party() as uow:
        lottery = LotteryEngine(uow, FirstChoice())
        prize = lottery.add_prize("红包", 3)
        lottery.draw(prize.id)
        lottery.draw(prize.id)
        assert lottery.reset() == 2

    with party(read_only=True) as uow:
        assert len(uow.winners) == 0
        assert len(uow.prizes) == 1
        assert len(LotteryEngine(uow).eligible_pool()) == 3

def test_delete_prize_removes_its_winners(party):
    with party() as uow:
        lottery = LotteryEngine(uow, FirstChoice())
        keep = lottery.add_prize("保留", 1)
        drop = lottery.add_prize("删除", 1)
        lottery.draw(keep.id)
        lottery.draw(drop.id)
        lottery.delete_prize(drop.id)

        assert [w.prize_id for w in uow.winners.all()] == [keep.id]
        # the freed guest can win again
        assert [g.name for g in lottery.eligible_pool()] == ["乙", "丙"]

def test_summaries_survive_deleted_guest(party):
    with party() as uow:
        lottery = LotteryEngine(uow, FirstChoice())
        prize = lottery.add_prize("红包", 2)
        lottery.draw(prize.id)
        GuestRegistry(uow).delete(1)

        summary = lottery.prize_summary()[0]
        assert summary["drawn"] == 1
        assert summary["remaining"] == 1
        assert lottery.winners_summary()[0]["guest_name"] == "-"
