"""
Tests for invitation content, RSVP fields and admin accounts
"""

import hashlib
import json

import pytest

from wedding_manager.core.config import settings
from wedding_manager.services.errors import NotFound, ValidationError
from wedding_manager.services.invitation_service import AdminAccounts, InvitationService
from wedding_manager.services.repositories import StoreUnitOfWork
from wedding_manager.utils.security import verify_password

def test_public_invitation(open_uow):
    with open_uow(read_only=True) as uow:
        invitation = InvitationService(uow).public_invitation()
        assert invitation["settings"]["wedding_location"] == "海滨花园宴会厅"
        assert [s["title"] for s in invitation["sections"]][0] == "我们的故事"
        dietary = next(f for f in invitation["fields"] if f["field_key"] == "dietary")
        assert dietary["option_list"] == []

def test_update_settings_only_touches_known_keys(open_uow):
    with open_uow() as uow:
        updated = InvitationService(uow).update_settings({
            "couple_name": " 阿杰 & 小雅 ",
            "hero_message": None,
            "unknown": "ignored",
        })
        assert updated["couple_name"] == "阿杰 & 小雅"
        assert updated["hero_message"] == ""
        assert "unknown" not in updated

    with open_uow(read_only=True) as uow:
        assert uow.settings["couple_name"] == "阿杰 & 小雅"

def test_sections_are_ordered(open_uow):
    with open_uow() as uow:
        service = InvitationService(uow)
        service.add_section("交通指引", sort_order=0)
        service.add_section("彩蛋", sort_order="x")
        titles = [s.title for s in service.sorted_sections()]
        assert titles[:2] == ["交通指引", "彩蛋"]

        service.delete_section(1)
        with pytest.raises(NotFound):
            service.delete_section(1)

def test_add_and_delete_field(open_uow):
    with open_uow() as uow:
        service = InvitationService(uow)
        field = service.add_field("是否需要住宿", "lodging", "select", "是,否", True)
        assert field.option_list == ["是", "否"]
        assert field.required is True

        with pytest.raises(ValidationError):
            service.add_field("照片", "photo", "file")
        with pytest.raises(ValidationError):
            service.add_field("", "blank", "text")

        service.delete_field(field.id)
        with pytest.raises(NotFound):
            service.delete_field(field.id)

def test_admin_accounts(open_uow):
    with open_uow() as uow:
        accounts = AdminAccounts(uow)
        admin = accounts.create("bride", "s3cret")
        assert admin.password_hash != "s3cret"
        with pytest.raises(ValidationError):
            accounts.create("bride", "another")
        with pytest.raises(ValidationError):
            accounts.create("groom", "")

    with open_uow(read_only=True) as uow:
        accounts = AdminAccounts(uow)
        assert [a["username"] for a in accounts.list_admins()] == ["admin", "bride"]
        assert accounts.authenticate("bride", "s3cret").username == "bride"
        assert accounts.authenticate("bride", "wrong") is None
        assert accounts.authenticate("nobody", "s3cret") is None

def legacy_hash(password, salt="0f1e2d3c4b5a69788796a5b4c3d2e1f0"):
    digest = hashlib.pbkdf2_hmac("sha512", password.encode("utf-8"), salt.encode("utf-8"), 100000, 64)
    return f"{salt}:{digest.hex()}"

def test_legacy_pbkdf2_hash_is_verified():
    stored = legacy_hash("admin123")
    assert verify_password("admin123", stored)
    assert not verify_password("admin124", stored)
    assert not verify_password("admin123", "nosalt:")
    assert not verify_password("admin123", ":deadbeef")

def test_imported_admin_can_log_in_and_is_rehashed(backend, tmp_path, monkeypatch):
    legacy = {
        "admins": [{"id": 1, "username": "admin", "password_hash": legacy_hash("admin123"),
                    "created_at": "2025-01-01T00:00:00"}],
        "counters": {"admins": 1},
    }
    path = tmp_path / "store.json"
    path.write_text(json.dumps(legacy), encoding="utf-8")
    monkeypatch.setattr(settings, "LEGACY_DATA_PATH", str(path))

    with StoreUnitOfWork(backend) as uow:
        accounts = AdminAccounts(uow)
        assert [a.username for a in uow.admins.items] == ["admin"]
        assert accounts.authenticate("admin", "wrong") is None
        assert accounts.authenticate("admin", "admin123").id == 1

    with StoreUnitOfWork(backend, read_only=True) as uow:
        admin = uow.admins.get(1)
        assert admin.password_hash.startswith("$2")
        assert AdminAccounts(uow).authenticate("admin", "admin123") is not None
