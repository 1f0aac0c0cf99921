"""
Pytest configuration and fixtures for backend tests.
"""

import pytest
from fastapi import Depends
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from crud_api.main import create_app
from crud_api.models import Base
from crud_api.routers import build_crud_router
from crud_api.services.crud import (
    CrudService,
    EntityRegistry,
    ExceptionShield,
    SqlAlchemyPersistence,
)
from shared.config.logging import shield_logger
from shared.infrastructure.db import get_db
from tests.models import Book, BookFilter, Note


# SQLite in-memory database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(
    autocommit=False, autoflush=False, expire_on_commit=False, bind=engine
)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    Uses SQLite in-memory for isolation.
    """
    Base.metadata.create_all(bind=engine)

    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def registry():
    """Registry holding the test entities."""
    registry = EntityRegistry()
    registry.register(Book)
    registry.register(Note)
    return registry


@pytest.fixture
def persistence(db_session, registry):
    return SqlAlchemyPersistence(db_session, registry, page_size=10)


@pytest.fixture
def book_service(persistence):
    """CrudService for books on the SQLite session."""
    return CrudService(
        "Book",
        BookFilter,
        persistence,
        shield=ExceptionShield(shield_logger),
    )


@pytest.fixture
def seed_books(db_session):
    """Create a small library."""
    books = [
        Book(id=1, title="Dune", author="Frank Herbert", year=1965),
        Book(id=2, title="Dune Messiah", author="Frank Herbert", year=1969),
        Book(id=3, title="Solaris", author="Stanislaw Lem", year=1961),
        Book(id=4, title="Hyperion", author="Dan Simmons", year=1989),
        Book(id=5, title="Neuromancer", author="William Gibson", year=1984),
    ]
    db_session.add_all(books)
    db_session.commit()
    return books


@pytest.fixture(scope="function")
def client(db_session, registry):
    """
    Create a test client exposing books under /api/books, with database
    session override.
    """
    def get_book_service(db: Session = Depends(get_db)) -> CrudService:
        return CrudService("Book", BookFilter, SqlAlchemyPersistence(db, registry))

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app = create_app(build_crud_router("/api/books", get_book_service))
    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
