"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends, Request, HTTPException
from fastapi.responses import Response
from sqlalchemy.orm import Session

from wedding_manager.core.config import settings
from wedding_manager.core.db import get_db
from wedding_manager.schemas.guest import RSVPRequest
from wedding_manager.services.guest_service import GuestRegistry
from wedding_manager.services.invitation_service import InvitationService
from wedding_manager.services.lottery_service import LotteryEngine
from wedding_manager.services.qr_service import QRService
from wedding_manager.services.repositories import StoreUnitOfWork, backend_for
from wedding_manager.utils.security import rate_limit_check, get_client_ip, optional_admin
from wedding_manager.utils.responses import success_response, rate_limit_error

router = APIRouter()

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok"}

@router.get("/invite")
async def get_invitation(db: Session = Depends(get_db)):
    """Invitation content and the RSVP form schema"""
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        invitation = InvitationService(uow).public_invitation()
    return success_response(message="Invitation retrieved", data=invitation)

@router.post("/invite/rsvp")
async def submit_rsvp(
    request: Request,
    rsvp: RSVPRequest,
    db: Session = Depends(get_db)
):
    """Submit or resubmit an RSVP; the phone number identifies the guest"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        return rate_limit_error()

    with StoreUnitOfWork(backend_for(db)) as uow:
        registry = GuestRegistry(uow)
        responses = registry.collect_responses(
            uow.fields.items,
            rsvp.responses,
            enforce_required=settings.ENFORCE_REQUIRED_FIELDS
        )
        guest = registry.upsert_by_phone(rsvp.name, rsvp.phone, rsvp.attending, responses)
        data = {
            "id": guest.id,
            "name": guest.name,
            "attending": guest.attending,
            "party_size": guest.party_size
        }

    return success_response(message="感谢回复，我们已收到您的信息", data=data)

@router.get("/qr/{page}.png")
async def get_qr_code(page: str):
    """QR code image for a guest-facing page (invite, checkin, lottery)"""
    if page not in QRService.PAGES:
        raise HTTPException(status_code=404, detail="Page not found")

    qr_bytes = QRService.generate_page_qr(page)
    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=qr_{page}.png"}
    )

@router.get("/lottery")
async def get_lottery_board(
    db: Session = Depends(get_db),
    is_admin: bool = Depends(optional_admin)
):
    """Lottery viewer data; the rolling animation runs client-side over the eligible names"""
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        lottery = LotteryEngine(uow)
        data = {
            "prizes": lottery.prize_summary(),
            "winners": lottery.winners_summary(),
            "eligible_names": [g.name for g in lottery.eligible_pool()],
            "is_admin": is_admin
        }
    return success_response(message="Lottery board retrieved", data=data)
