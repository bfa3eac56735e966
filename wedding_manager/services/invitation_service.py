"""
Invitation content, custom RSVP fields and admin accounts
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from wedding_manager.schemas.store import FIELD_TYPES, Admin, InvitationField, InvitationSection
from wedding_manager.services.errors import NotFound, ValidationError
from wedding_manager.services.repositories import StoreUnitOfWork
from wedding_manager.utils.security import hash_password, is_legacy_hash, verify_password

logger = logging.getLogger(__name__)

SETTING_KEYS = ("couple_name", "wedding_date", "wedding_location", "hero_message")


class InvitationService:
    def __init__(self, uow: StoreUnitOfWork):
        self.uow = uow

    def public_invitation(self) -> Dict:
        """Everything the guest-facing invite page needs"""
        return {
            "settings": dict(self.uow.settings),
            "sections": [s.model_dump() for s in self.sorted_sections()],
            "fields": [
                {**f.model_dump(), "option_list": f.option_list}
                for f in self.uow.fields.items
            ],
        }

    def update_settings(self, values: Dict[str, Optional[str]]) -> Dict[str, str]:
        for key in SETTING_KEYS:
            self.uow.settings[key] = (values.get(key) or "").strip()
        logger.info("Invitation settings updated")
        return dict(self.uow.settings)

    def sorted_sections(self) -> List[InvitationSection]:
        return sorted(self.uow.sections.items, key=lambda s: (s.sort_order, s.id))

    def add_section(self, title: str, body: str = "", image_url: str = "", sort_order=0) -> InvitationSection:
        try:
            order = int(sort_order or 0)
        except (TypeError, ValueError):
            order = 0
        section = InvitationSection(
            id=self.uow.sections.next_id(),
            sort_order=order,
            title=title or "",
            body=body or "",
            image_url=image_url or "",
        )
        self.uow.sections.add(section)
        return section

    def delete_section(self, section_id: int) -> InvitationSection:
        section = self.uow.sections.remove(section_id)
        if section is None:
            raise NotFound("内容区块", section_id)
        return section

    def add_field(
        self,
        label: str,
        field_key: str,
        field_type: str,
        options: str = "",
        required: bool = False,
    ) -> InvitationField:
        label = (label or "").strip()
        field_key = (field_key or "").strip()
        if not label or not field_key or not field_type:
            raise ValidationError("请填写字段名称、字段键和类型")
        if field_type not in FIELD_TYPES:
            raise ValidationError(f"不支持的字段类型：{field_type}", details={"allowed": list(FIELD_TYPES)})
        if any(f.field_key == field_key for f in self.uow.fields.items):
            logger.warning(f"Invitation field key '{field_key}' is used more than once")
        field = InvitationField(
            id=self.uow.fields.next_id(),
            label=label,
            field_key=field_key,
            field_type=field_type,
            options=options or "",
            required=bool(required),
        )
        self.uow.fields.add(field)
        logger.info(f"Invitation field '{field_key}' added")
        return field

    def delete_field(self, field_id: int) -> InvitationField:
        field = self.uow.fields.remove(field_id)
        if field is None:
            raise NotFound("字段", field_id)
        return field


class AdminAccounts:
    def __init__(self, uow: StoreUnitOfWork):
        self.uow = uow

    def list_admins(self) -> List[Dict]:
        return [
            {"id": a.id, "username": a.username, "created_at": a.created_at.isoformat()}
            for a in self.uow.admins.items
        ]

    def create(self, username: str, password: str) -> Admin:
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("请填写用户名和密码")
        if any(a.username == username for a in self.uow.admins.items):
            raise ValidationError(f"用户名 {username} 已存在")
        admin = Admin(
            id=self.uow.admins.next_id(),
            username=username,
            password_hash=hash_password(password),
            created_at=datetime.utcnow(),
        )
        self.uow.admins.add(admin)
        logger.info(f"Admin '{username}' created")
        return admin

    def authenticate(self, username: str, password: str) -> Optional[Admin]:
        admin = next((a for a in self.uow.admins.items if a.username == username), None)
        if admin is None or not verify_password(password or "", admin.password_hash):
            return None
        if is_legacy_hash(admin.password_hash):
            admin.password_hash = hash_password(password)
            logger.info(f"Admin '{admin.username}' password rehashed with bcrypt")
        return admin
