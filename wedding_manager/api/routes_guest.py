"""
Guest-facing check-in routes
"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.schemas.guest import CheckInRequest, NewGuestCheckInRequest
from wedding_manager.services.checkin_service import CheckInResolver
from wedding_manager.services.repositories import StoreUnitOfWork, backend_for
from wedding_manager.utils.security import rate_limit_check, get_client_ip
from wedding_manager.utils.responses import success_response, rate_limit_error

router = APIRouter()

@router.post("/checkin")
async def check_in_guest(
    request: Request,
    checkin_data: CheckInRequest,
    db: Session = Depends(get_db)
):
    """Check in by name or phone.

    No match or several matches come back as a prompt (``needs_confirmation``)
    so the guest can retry or use the new-guest flow.
    """
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        return rate_limit_error()

    with StoreUnitOfWork(backend_for(db)) as uow:
        result = CheckInResolver(uow).resolve_lookup(
            checkin_data.lookup,
            checkin_data.confirm_attending,
            checkin_data.actual_attendees
        )

    return success_response(message=result.message, data=result.model_dump())

@router.post("/checkin/new")
async def check_in_new_guest(
    request: Request,
    checkin_data: NewGuestCheckInRequest,
    db: Session = Depends(get_db)
):
    """Register and check in a guest who was not found on the list"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        return rate_limit_error()

    with StoreUnitOfWork(backend_for(db)) as uow:
        result = CheckInResolver(uow).check_in_new_guest(
            checkin_data.name,
            checkin_data.phone,
            checkin_data.confirm_attending,
            checkin_data.actual_attendees
        )

    return success_response(message=result.message, data=result.model_dump())
