"""
Repository layer abstracting storage (SQLAlchemy key-value table vs Firebase Firestore).

The application state is a single document. A request opens a
``StoreUnitOfWork``, which loads the document once, hands out one repository per
collection, and writes the document back once when the block exits cleanly.
"""

from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Callable, Dict, Generic, List, Optional, TypeVar

from sqlalchemy.orm import Session

from wedding_manager.core.config import settings
from wedding_manager.models import StoreEntry
from wedding_manager.schemas.store import (
    Admin,
    InvitationField,
    InvitationSection,
    Store,
)
from wedding_manager.services.firebase_client import get_firestore_client
from wedding_manager.utils.security import hash_password

logger = logging.getLogger(__name__)


def use_firestore() -> bool:
    return settings.USE_FIREBASE is True


# -------- Backends --------

class StoreBackend(ABC):
    """Raw access to the persisted top-level keys of the store document"""

    @abstractmethod
    def read_entries(self) -> Dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def write_entries(self, entries: Dict[str, Any]) -> None:
        """Write every key atomically"""
        raise NotImplementedError


class SqlStoreBackend(StoreBackend):
    def __init__(self, db: Session):
        self.db = db

    def read_entries(self) -> Dict[str, Any]:
        rows = self.db.query(StoreEntry).all()
        return {row.key: json.loads(row.value) for row in rows}

    def write_entries(self, entries: Dict[str, Any]) -> None:
        try:
            for key, value in entries.items():
                self.db.merge(StoreEntry(key=key, value=json.dumps(value, ensure_ascii=False)))
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


# Firestore shape: collection "<FIRESTORE_COLLECTION>/{key}" documents with a JSON "value" field
class FirestoreStoreBackend(StoreBackend):
    def __init__(self, client=None, collection: str | None = None):
        self.client = client or get_firestore_client()
        self.collection = collection or settings.FIRESTORE_COLLECTION

    def read_entries(self) -> Dict[str, Any]:
        docs = self.client.collection(self.collection).get()
        entries: Dict[str, Any] = {}
        for doc in docs:
            data = doc.to_dict() or {}
            if "value" in data:
                entries[doc.id] = json.loads(data["value"])
        return entries

    def write_entries(self, entries: Dict[str, Any]) -> None:
        batch = self.client.batch()
        for key, value in entries.items():
            ref = self.client.collection(self.collection).document(key)
            batch.set(ref, {
                "value": json.dumps(value, ensure_ascii=False),
                "updated_at": datetime.utcnow().isoformat(),
            })
        batch.commit()


def backend_for(db: Session) -> StoreBackend:
    if use_firestore():
        return FirestoreStoreBackend()
    return SqlStoreBackend(db)


# -------- Store document --------

DEFAULT_SECTIONS = [
    {
        "title": "我们的故事",
        "body": "从初见到牵手，我们把每一份心动写进这场婚礼。",
        "image_url": "https://images.unsplash.com/photo-1520854221256-17451cc331bf?q=80&w=1600&auto=format&fit=crop",
    },
    {
        "title": "婚礼信息",
        "body": "时间：2025年5月20日 17:30\n地点：海滨花园宴会厅",
        "image_url": "https://images.unsplash.com/photo-1500530855697-b586d89ba3ee?q=80&w=1600&auto=format&fit=crop",
    },
    {
        "title": "期待与你见面",
        "body": "你的到来是我们最好的礼物。",
        "image_url": "https://images.unsplash.com/photo-1487412720507-e7ab37603c6f?q=80&w=1600&auto=format&fit=crop",
    },
]

DEFAULT_SETTINGS = {
    "couple_name": "林曦 & 周然",
    "wedding_date": "2025年5月20日 17:30",
    "wedding_location": "海滨花园宴会厅",
    "hero_message": "诚挚邀请你见证我们的幸福时刻",
}


class StoreRepo:
    @staticmethod
    def load(backend: StoreBackend) -> Store:
        entries = backend.read_entries()
        if not entries:
            entries = StoreRepo.read_legacy_document(settings.LEGACY_DATA_PATH)
        cleaned = {key: value for key, value in entries.items() if value is not None}
        store = Store.model_validate(cleaned)
        if StoreRepo.seed(store):
            StoreRepo.save(backend, store)
        return store

    @staticmethod
    def save(backend: StoreBackend, store: Store) -> None:
        backend.write_entries(store.model_dump(mode="json"))

    @staticmethod
    def next_id(store: Store, collection: str) -> int:
        """Increment and return the counter for a collection.

        Mutates the in-memory store only; the caller must save for durability.
        """
        current = store.counters.get(collection, 0)
        store.counters[collection] = current + 1
        return current + 1

    @staticmethod
    def read_legacy_document(path: str) -> Dict[str, Any]:
        if not path or not os.path.exists(path):
            return {}
        with open(path, "r", encoding="utf-8") as f:
            raw = f.read()
        if not raw.strip():
            return {}
        logger.info(f"Importing legacy store document from {path}")
        return json.loads(raw)

    @staticmethod
    def seed(store: Store) -> bool:
        """Fill in default content for an empty store. Returns True if anything was added."""
        changed = False
        if not store.admins:
            store.admins.append(Admin(
                id=StoreRepo.next_id(store, "admins"),
                username=settings.DEFAULT_ADMIN_USERNAME,
                password_hash=hash_password(settings.DEFAULT_ADMIN_PASSWORD),
            ))
            changed = True

        if not store.invitation_sections:
            for order, section in enumerate(DEFAULT_SECTIONS, start=1):
                store.invitation_sections.append(InvitationSection(
                    id=StoreRepo.next_id(store, "invitation_sections"),
                    sort_order=order,
                    **section,
                ))
            changed = True

        if not store.invitation_fields:
            store.invitation_fields.extend([
                InvitationField(
                    id=StoreRepo.next_id(store, "invitation_fields"),
                    label="出席人数",
                    field_key="attendees",
                    field_type="select",
                    options="1,2,3,4+",
                    required=True,
                ),
                InvitationField(
                    id=StoreRepo.next_id(store, "invitation_fields"),
                    label="忌口/过敏",
                    field_key="dietary",
                    field_type="text",
                    options="",
                    required=False,
                ),
            ])
            changed = True

        if not store.settings:
            store.settings = dict(DEFAULT_SETTINGS)
            changed = True

        if changed:
            logger.info("Store seeded with default content")
        return changed


# -------- Collection repositories --------

RecordT = TypeVar("RecordT")


class CollectionRepo(Generic[RecordT]):
    """List-backed repository over one collection of the store document"""

    def __init__(self, store: Store, name: str):
        self.store = store
        self.name = name

    @property
    def items(self) -> List[RecordT]:
        return getattr(self.store, self.name)

    def all(self) -> List[RecordT]:
        return list(self.items)

    def get(self, record_id: int) -> Optional[RecordT]:
        return next((item for item in self.items if item.id == record_id), None)

    def find(self, predicate: Callable[[RecordT], bool]) -> List[RecordT]:
        return [item for item in self.items if predicate(item)]

    def next_id(self) -> int:
        return StoreRepo.next_id(self.store, self.name)

    def add(self, record: RecordT) -> RecordT:
        self.items.append(record)
        return record

    def remove(self, record_id: int) -> Optional[RecordT]:
        record = self.get(record_id)
        if record is not None:
            self.items.remove(record)
        return record

    def remove_where(self, predicate: Callable[[RecordT], bool]) -> int:
        kept = [item for item in self.items if not predicate(item)]
        removed = len(self.items) - len(kept)
        self.items[:] = kept
        return removed

    def clear(self) -> int:
        removed = len(self.items)
        self.items.clear()
        return removed

    def __len__(self) -> int:
        return len(self.items)


class StoreUnitOfWork:
    """Load the store once, expose per-collection repositories, save once on success.

    An exception inside the block skips the save, so a rejected operation never
    persists partial changes. Known limitation: there is no concurrency token, so
    two overlapping mutating requests can lose an update.
    """

    def __init__(self, backend: StoreBackend, read_only: bool = False):
        self.backend = backend
        self.read_only = read_only
        self.store: Optional[Store] = None

    def __enter__(self) -> "StoreUnitOfWork":
        self.store = StoreRepo.load(self.backend)
        self.admins = CollectionRepo(self.store, "admins")
        self.sections = CollectionRepo(self.store, "invitation_sections")
        self.fields = CollectionRepo(self.store, "invitation_fields")
        self.guests = CollectionRepo(self.store, "guests")
        self.tables = CollectionRepo(self.store, "tables")
        self.checkins = CollectionRepo(self.store, "checkins")
        self.prizes = CollectionRepo(self.store, "prizes")
        self.winners = CollectionRepo(self.store, "winners")
        self.ledger = CollectionRepo(self.store, "ledger")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is None and not self.read_only:
            StoreRepo.save(self.backend, self.store)
        return False

    @property
    def settings(self) -> Dict[str, str]:
        return self.store.settings

