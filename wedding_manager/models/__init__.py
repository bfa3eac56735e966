"""
Database models package
"""

from .store_entry import StoreEntry

__all__ = ["StoreEntry"]
