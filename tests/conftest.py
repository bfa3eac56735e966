"""
Shared fixtures: a throwaway SQLite store and unit-of-work factory
"""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from wedding_manager.core.db import Base
from wedding_manager.services.repositories import SqlStoreBackend, StoreUnitOfWork

# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///./test_wedding.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

@pytest.fixture
def db_session():
    """Create test database session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)

@pytest.fixture
def backend(db_session):
    return SqlStoreBackend(db_session)

@pytest.fixture
def open_uow(backend):
    """Factory opening a fresh unit of work over the test store"""
    def _open(read_only=False):
        return StoreUnitOfWork(backend, read_only=read_only)
    return _open
