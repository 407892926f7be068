"""Pytest fixtures for testing"""

import pytest
from typing import Callable, Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from octobooks_royalties.api.dependencies import get_payout_gateway
from octobooks_royalties.api.main import create_app
from octobooks_royalties.domain.models import Book, Order, RoyaltyConfig
from octobooks_royalties.infrastructure.database.models import AuthorRecord, Base, PublisherRecord, UserRecord
from octobooks_royalties.infrastructure.database.repositories import (
    AuthorRepository,
    PublisherRepository,
    UserRepository,
)
from octobooks_royalties.infrastructure.database.session import get_db
from octobooks_royalties.services.sale_recorder import SaleRecorder


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakePayoutGateway:
    """Collects payout events instead of calling the provider"""

    def __init__(self):
        self.events: List[dict] = []

    async def send_payout_event(self, payload: dict) -> None:
        self.events.append(payload)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def payout_gateway() -> FakePayoutGateway:
    return FakePayoutGateway()


@pytest.fixture
def client(db: Session, payout_gateway: FakePayoutGateway) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_payout_gateway] = lambda: payout_gateway
    return TestClient(app)


@pytest.fixture
def config() -> RoyaltyConfig:
    """Default split: 10% platform, 15% author, 20% publisher"""
    return RoyaltyConfig()


@pytest.fixture
def recorder(db: Session, config: RoyaltyConfig) -> SaleRecorder:
    return SaleRecorder(db, config)


@pytest.fixture
def user(db: Session) -> UserRecord:
    """Platform account of the author, with an empty wallet"""
    record = UserRepository(db).create_user(name="Anita Rao", email="anita@example.com")
    db.commit()
    return record


@pytest.fixture
def author(db: Session, user: UserRecord) -> AuthorRecord:
    """Author linked to a user account, using the default royalty rate"""
    record = AuthorRepository(db).create_author(name="Anita Rao", email="anita@example.com", user_id=user.id)
    db.commit()
    return record


@pytest.fixture
def publisher(db: Session) -> PublisherRecord:
    """Publisher using the default royalty rate"""
    record = PublisherRepository(db).create_publisher(name="Lotus Press", contact_email="rights@lotus.example")
    db.commit()
    return record


@pytest.fixture
def make_book(author: AuthorRecord, publisher: PublisherRecord) -> Callable[..., Book]:
    """Factory for books written by the author fixture and published by the publisher fixture"""

    def _make(book_id: str = "book_1", title: str = "Monsoon Letters", final_price_cents: int = 30000) -> Book:
        return Book(
            book_id=book_id,
            title=title,
            author_id=author.id,
            publisher_id=publisher.id,
            final_price_cents=final_price_cents,
        )

    return _make


@pytest.fixture
def order() -> Order:
    return Order(order_id="order_1", user_id="customer_1")
