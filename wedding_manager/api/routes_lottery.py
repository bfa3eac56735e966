"""
Admin lottery routes: prizes, draws and reset
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from wedding_manager.core.config import settings
from wedding_manager.core.db import get_db
from wedding_manager.schemas.lottery import PrizeCreate, DrawRequest
from wedding_manager.services.lottery_service import LotteryEngine, RandomSource, default_random_source
from wedding_manager.services.repositories import StoreUnitOfWork, backend_for
from wedding_manager.utils.security import verify_admin_token
from wedding_manager.utils.responses import success_response

router = APIRouter()

_random_source = default_random_source(settings.LOTTERY_SEED)

def get_random_source() -> RandomSource:
    """Process-wide random source; tests override this dependency"""
    return _random_source

@router.get("")
async def get_lottery(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        lottery = LotteryEngine(uow)
        data = {
            "prizes": lottery.prize_summary(),
            "winners": lottery.winners_summary(),
            "eligible_count": len(lottery.eligible_pool())
        }
    return success_response(message="Lottery retrieved", data=data)

@router.post("/prizes")
async def add_prize(
    prize_data: PrizeCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        prize = LotteryEngine(uow).add_prize(prize_data.name, prize_data.quantity)
    return success_response(message="Prize added", data=prize.model_dump(), status_code=201)

@router.delete("/prizes/{prize_id}")
async def delete_prize(
    prize_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Delete a prize and its winners"""
    with StoreUnitOfWork(backend_for(db)) as uow:
        LotteryEngine(uow).delete_prize(prize_id)
    return success_response(message="Prize deleted", data={"deleted_prize_id": prize_id})

@router.post("/draw")
async def draw_winner(
    draw_request: DrawRequest,
    db: Session = Depends(get_db),
    rng: RandomSource = Depends(get_random_source),
    token: str = Depends(verify_admin_token)
):
    """Draw one winner for a prize among checked-in guests who have not won yet"""
    with StoreUnitOfWork(backend_for(db)) as uow:
        winner = LotteryEngine(uow, rng=rng).draw(draw_request.prize_id)
    return success_response(message="Winner drawn", data={"winner": winner})

@router.post("/reset")
async def reset_lottery(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    """Clear every winner. Irreversible."""
    with StoreUnitOfWork(backend_for(db)) as uow:
        removed = LotteryEngine(uow).reset()
    return success_response(message="Lottery reset", data={"cleared_winners": removed})
