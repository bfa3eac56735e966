"""
Admin API routes - requires authentication
"""

import logging
from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session

from wedding_manager.core.config import settings
from wedding_manager.core.db import get_db
from wedding_manager.schemas.guest import (
    GuestCreate,
    GuestUpdate,
    TableAssignment,
    ManualCheckInRequest,
    CheckInUpdate,
)
from wedding_manager.schemas.invitation import (
    SettingsUpdate,
    SectionCreate,
    FieldCreate,
    LoginRequest,
    AdminCreate,
)
from wedding_manager.schemas.table import TableUpsert, TableUpdate
from wedding_manager.services.checkin_service import CheckInResolver
from wedding_manager.services.dashboard_service import dashboard_summary
from wedding_manager.services.excel_service import ExcelService
from wedding_manager.services.guest_service import GuestRegistry
from wedding_manager.services.invitation_service import InvitationService, AdminAccounts
from wedding_manager.services.repositories import StoreUnitOfWork, backend_for
from wedding_manager.services.seating_service import TableAllocator
from wedding_manager.utils.security import verify_admin_token, create_access_token
from wedding_manager.utils.responses import success_response, error_response

logger = logging.getLogger(__name__)

router = APIRouter()

def _guest_data(guest) -> dict:
    return {
        "id": guest.id,
        "name": guest.name,
        "display_name": guest.display_name,
        "phone": guest.phone,
        "attending": guest.attending,
        "party_size": guest.party_size,
        "responses": guest.responses,
        "table_no": guest.table_no,
        "updated_at": guest.updated_at.isoformat()
    }

def _table_data(table) -> dict:
    return {
        "id": table.id,
        "table_no": table.table_no,
        "nickname": table.nickname,
        "seats": table.seats,
        "preference": table.preference,
        "updated_at": table.updated_at.isoformat()
    }

# -------- Auth & accounts --------

@router.post("/login")
async def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """Exchange admin username/password for a bearer token"""
    with StoreUnitOfWork(backend_for(db)) as uow:
        admin = AdminAccounts(uow).authenticate(credentials.username, credentials.password)

    if admin is None:
        return error_response(
            message="账号或密码错误",
            error_code="invalid_credentials",
            status_code=401
        )

    logger.info(f"Admin '{admin.username}' logged in")
    return success_response(
        message="Login successful",
        data={
            "access_token": create_access_token(admin.id, admin.username),
            "token_type": "bearer",
            "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
        }
    )

@router.get("/dashboard")
async def get_dashboard(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        summary = dashboard_summary(uow)
    return success_response(message="Dashboard retrieved", data=summary)

@router.get("/admins")
async def list_admins(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        admins = AdminAccounts(uow).list_admins()
    return success_response(message="Admins retrieved", data=admins)

@router.post("/admins")
async def create_admin(
    admin_data: AdminCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        admin = AdminAccounts(uow).create(admin_data.username, admin_data.password)
    return success_response(
        message="Admin created successfully",
        data={"id": admin.id, "username": admin.username},
        status_code=201
    )

# -------- Invitation --------

@router.get("/invitation")
async def get_invitation(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        invitation = InvitationService(uow).public_invitation()
    return success_response(message="Invitation retrieved", data=invitation)

@router.put("/invitation/settings")
async def update_invitation_settings(
    values: SettingsUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        updated = InvitationService(uow).update_settings(values.model_dump())
    return success_response(message="Settings updated", data=updated)

@router.post("/invitation/sections")
async def add_section(
    section_data: SectionCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        section = InvitationService(uow).add_section(**section_data.model_dump())
    return success_response(message="Section added", data=section.model_dump(), status_code=201)

@router.delete("/invitation/sections/{section_id}")
async def delete_section(
    section_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        InvitationService(uow).delete_section(section_id)
    return success_response(message="Section deleted", data={"deleted_section_id": section_id})

@router.post("/invitation/fields")
async def add_field(
    field_data: FieldCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        field = InvitationService(uow).add_field(**field_data.model_dump())
    return success_response(message="Field added", data=field.model_dump(), status_code=201)

@router.delete("/invitation/fields/{field_id}")
async def delete_field(
    field_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        InvitationService(uow).delete_field(field_id)
    return success_response(message="Field deleted", data={"deleted_field_id": field_id})

# -------- Guests --------

@router.get("/guests")
async def list_guests(
    search: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """List guests, optionally filtered by name or phone"""
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        rows = GuestRegistry(uow).list_rows()
        fields = [f.model_dump() for f in uow.fields.items]

    if search:
        needle = search.strip().lower()
        rows = [r for r in rows if needle in r["name"].lower() or needle in r["phone"]]

    return success_response(
        message="Guests retrieved successfully",
        data={"guests": rows, "fields": fields, "total": len(rows)}
    )

@router.post("/guests")
async def save_guest(
    guest_data: GuestCreate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Add a guest, or update the guest with the same phone"""
    with StoreUnitOfWork(backend_for(db)) as uow:
        registry = GuestRegistry(uow)
        responses = registry.collect_responses(uow.fields.items, guest_data.responses)
        guest = registry.upsert_by_phone(
            guest_data.name,
            guest_data.phone,
            guest_data.attending,
            responses,
            guest_data.table_no if guest_data.table_no is not None else ""
        )
        data = _guest_data(guest)
    return success_response(message="Guest saved successfully", data=data)

@router.patch("/guests/{guest_id}")
async def update_guest(
    guest_id: int,
    guest_update: GuestUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Update guest information"""
    with StoreUnitOfWork(backend_for(db)) as uow:
        registry = GuestRegistry(uow)
        responses = None
        if guest_update.responses is not None:
            responses = registry.collect_responses(uow.fields.items, guest_update.responses)
        guest = registry.update(
            guest_id,
            name=guest_update.name,
            phone=guest_update.phone,
            attending=guest_update.attending,
            responses=responses,
            table_no=guest_update.table_no
        )
        data = _guest_data(guest)
    return success_response(message="Guest updated successfully", data=data)

@router.put("/guests/{guest_id}/table")
async def assign_guest_table(
    guest_id: int,
    assignment: TableAssignment,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        guest = TableAllocator(uow).assign_guest(guest_id, assignment.table_no)
        data = _guest_data(guest)
    return success_response(message="Table assigned", data=data)

@router.delete("/guests/{guest_id}")
async def delete_guest(
    guest_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        GuestRegistry(uow).delete(guest_id)
    return success_response(message="Guest deleted successfully", data={"deleted_guest_id": guest_id})

@router.get("/guests/export.xlsx")
async def export_guests(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    """Export current guest data to Excel"""
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        content = ExcelService.export_guests(GuestRegistry(uow).list_rows(), uow.fields.all())
    return Response(
        content=content,
        media_type=ExcelService.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=guests.xlsx"}
    )

@router.get("/guests/template.xlsx")
async def download_guest_template(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        content = ExcelService.create_template(uow.fields.all())
    return Response(
        content=content,
        media_type=ExcelService.XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": "attachment; filename=guest_template.xlsx"}
    )

@router.post("/guests/import")
async def import_guests(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Upload an Excel guest list; rows are upserted by phone"""
    if not file.filename.endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        return error_response(message="File too large", status_code=413)

    with StoreUnitOfWork(backend_for(db)) as uow:
        processed_count = ExcelService.import_guests(file_content, GuestRegistry(uow), uow.fields.all())

    logger.info(f"Imported {processed_count} guest row(s) from {file.filename}")
    return success_response(
        message=f"Excel file processed successfully. {processed_count} guests imported.",
        data={"processed_count": processed_count, "filename": file.filename}
    )

@router.get("/seat-cards")
async def get_seat_cards(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        cards = TableAllocator(uow).seat_cards()
    return success_response(message="Seat cards retrieved", data=cards)

# -------- Tables --------

@router.get("/tables")
async def get_seating_chart(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    """Tables in natural order with their current occupancy"""
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        allocator = TableAllocator(uow)
        data = {
            "tables": allocator.seating_chart(),
            "unassigned": [
                {"id": g.id, "name": g.display_name, "party_size": g.party_size}
                for g in allocator.unassigned_guests()
            ]
        }
    return success_response(message="Seating chart retrieved", data=data)

@router.post("/tables")
async def upsert_table(
    table_data: TableUpsert,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        table = TableAllocator(uow).upsert_table(**table_data.model_dump())
        data = _table_data(table)
    return success_response(message="Table saved successfully", data=data)

@router.patch("/tables/{table_id}")
async def update_table(
    table_id: int,
    table_data: TableUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        table = TableAllocator(uow).update_table(table_id, **table_data.model_dump())
        data = _table_data(table)
    return success_response(message="Table updated successfully", data=data)

@router.delete("/tables/{table_id}")
async def delete_table(
    table_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        table = TableAllocator(uow).delete_table(table_id)
    return success_response(
        message="Table deleted successfully",
        data={"deleted_table_id": table_id, "table_no": table.table_no}
    )

# -------- Check-ins --------

@router.get("/checkins")
async def list_checkins(db: Session = Depends(get_db), token: str = Depends(verify_admin_token)):
    with StoreUnitOfWork(backend_for(db), read_only=True) as uow:
        overview = CheckInResolver(uow).checkin_overview()
    return success_response(message="Check-ins retrieved", data=overview)

@router.post("/checkins")
async def manual_checkin(
    checkin_data: ManualCheckInRequest,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    """Check a guest in from the admin desk, creating the guest if needed"""
    with StoreUnitOfWork(backend_for(db)) as uow:
        result = CheckInResolver(uow).manual_checkin(
            checkin_data.name,
            phone=checkin_data.phone,
            table_no=checkin_data.table_no,
            actual_attendees=checkin_data.actual_attendees
        )
    return success_response(message=result.message, data=result.model_dump())

@router.patch("/checkins/{guest_id}")
async def update_checkin(
    guest_id: int,
    checkin_update: CheckInUpdate,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        checkin = CheckInResolver(uow).update_checkin(guest_id, checkin_update.actual_attendees)
        data = checkin.model_dump(mode="json")
    return success_response(message="Check-in updated", data=data)

@router.delete("/checkins/{guest_id}")
async def cancel_checkin(
    guest_id: int,
    db: Session = Depends(get_db),
    token: str = Depends(verify_admin_token)
):
    with StoreUnitOfWork(backend_for(db)) as uow:
        CheckInResolver(uow).cancel_checkin(guest_id)
    return success_response(message="Check-in cancelled", data={"guest_id": guest_id})
