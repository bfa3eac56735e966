"""
Admin dashboard statistics
"""

from typing import Dict

from wedding_manager.services.checkin_service import CheckInResolver
from wedding_manager.services.ledger_service import Ledger
from wedding_manager.services.lottery_service import LotteryEngine
from wedding_manager.services.repositories import StoreUnitOfWork
from wedding_manager.services.seating_service import TableAllocator


def dashboard_summary(uow: StoreUnitOfWork) -> Dict:
    guests = uow.guests.items
    attending = [g for g in guests if g.attending]
    allocator = TableAllocator(uow)
    checkins = CheckInResolver(uow).checkin_overview()
    lottery = LotteryEngine(uow)

    return {
        "guest_count": len(guests),
        "attending_count": len(attending),
        "expected_people": sum(g.party_size for g in attending),
        "table_count": len(uow.tables),
        "total_seats": sum(t.seats for t in uow.tables.items),
        "unassigned_guests": len(allocator.unassigned_guests()),
        "checked_in_guests": checkins["checked_in_guests"],
        "actual_people": checkins["actual_people"],
        "prize_count": len(uow.prizes),
        "winner_count": len(uow.winners),
        "eligible_for_lottery": len(lottery.eligible_pool()),
        "ledger": Ledger(uow).summary(),
    }
