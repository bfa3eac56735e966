"""
Admin ledger routes
"""

from typing import Optional
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from wedding_manager.core.db import get_db
from wedding_manager.schemas.ledger import LedgerEntryCreate, LedgerEntryUpdate
from wedding_manager.schemas.store import LEDGER_CATEGORIES, LEDGER_DIRECTIONS
from wedding_manager.services.excel_service import ExcelService
from wedding_manager.services.ledger_service import Ledger
from wedding_manager.services.repositories import StoreUnitOfWork, backend_for
from wedding_manager.utils.security import verify_admin_token
from wedding_manager.utils.responses import success_response

router = APIRouter()

@router.get("")
async def list_entries(
    direction: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        ledger = Ledger(uow)
        data = {
            "entries": [e.model_dump(mode="json") for e in ledger.list_entries(direction, category)],
            "summary": ledger.summary(),
            "categories": list(LEDGER_CATEGORIES),
            "directions": list(LEDGER_DIRECTIONS)
        }
    return success_response(message="Ledger retrieved", data=data)

@router.post("")
async def create_entry(
    entry_data: LedgerEntryCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        entry = Ledger(uow).create(entry_data.model_dump())
        data = entry.model_dump(mode="json")
    return success_response(message="Ledger entry added", data=data, status_code=201)

@router.patch("/{entry_id}")
async def update_entry(
    entry_id: int,
    entry_data: LedgerEntryUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        entry = Ledger(uow).update(entry_id, entry_data.model_dump())
        data = entry.model_dump(mode="json")
    return success_response(message="Ledger entry updated", data=data)

@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        Ledger(uow).delete(entry_id)
    return success_response(message="Ledger entry deleted", data={"deleted_entry_id": entry_id})

@router.get("/export.xlsx")
async def export_ledger(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        content = ExcelService.export_ledger(Ledger(uow).list_entries())
    return Response(
        content=content,
        media_type=ExcelService.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=ledger.xlsx"}
    )
