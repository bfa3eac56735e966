"""
Key-value row holding one top-level collection of the store document
"""

from datetime import datetime
from sqlalchemy import Column, String, Text, DateTime

from wedding_manager.core.db import Base

class StoreEntry(Base):
    __tablename__ = "store"

    key = Column(String(64), primary_key=True)
    value = Column(Text, nullable=False)  # JSON-encoded collection
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
