"""
Shared fixtures

Every test gets its own SQLite file database. The engine opens each
transaction with BEGIN IMMEDIATE, so a session must not sit in an open
transaction while another session writes; fixtures commit before returning.
"""
from datetime import timedelta
from decimal import Decimal
from itertools import count

import pytest
from fastapi.testclient import TestClient

from bidhouse.core.utils import utcnow
from bidhouse.infrastructure.database import (
    create_db_engine,
    get_db,
    init_db,
    make_session_factory,
)
from bidhouse.main import app
from bidhouse.models import Auction, AuctionStatus, User

_emails = count(1)


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'auctions.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def make_user(db):
    """Insert a user directly (skips bcrypt to keep tests fast)"""
    def _make_user(email=None):
        user = User(email=email or f"user{next(_emails)}@example.com", password_hash="not-a-real-hash")
        db.add(user)
        db.commit()
        return user
    return _make_user


@pytest.fixture
def make_auction(db):
    """
    Insert an auction directly

    Bypasses AuctionService so tests can create auctions that are already
    past their end time.
    """
    def _make_auction(seller, starting_price="10.00", end_time=None, title="Vintage Camera", **fields):
        now = utcnow()
        auction = Auction(
            seller_id=seller.id,
            title=title,
            starting_price=Decimal(starting_price),
            end_time=end_time or now + timedelta(hours=1),
            status=fields.pop("status", AuctionStatus.ACTIVE),
            created_at=fields.pop("created_at", now),
            updated_at=now,
            **fields,
        )
        db.add(auction)
        db.commit()
        return auction
    return _make_auction


@pytest.fixture
def seller(make_user):
    return make_user("seller@example.com")


@pytest.fixture
def bidder(make_user):
    return make_user("bidder@example.com")


@pytest.fixture
def client(session_factory):
    """API client bound to the test database (lifespan is not run)"""
    def _get_test_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_test_db
    yield TestClient(app)
    app.dependency_overrides.clear()
