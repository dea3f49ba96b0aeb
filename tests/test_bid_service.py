"""
Bid placement tests

Covers acceptance, every rejection path, and conflict retries injected by
making commit lose the version compare-and-swap.
"""
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm.exc import StaleDataError

from bidhouse.core.retry import RetryConfig
from bidhouse.core.utils import utcnow
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.models import Auction, AuctionStatus, Bid
from bidhouse.services import bid_service
from bidhouse.services import (
    BidService,
    ConflictError,
    NotFoundError,
    StateConflictError,
    UnauthenticatedError,
    ValidationError,
)

FAST_RETRY = RetryConfig(max_attempts=3, initial_delay=0, max_delay=0, jitter=False)


def reload(db, auction_id):
    db.expire_all()
    return db.get(Auction, auction_id)


def bid_count(db, auction_id):
    return db.execute(select(func.count(Bid.id)).where(Bid.auction_id == auction_id)).scalar_one()


class TestPlaceBid:

    def test_accepted_bid_moves_pointer(self, db, seller, bidder, make_auction):
        auction = make_auction(seller, starting_price="10.00")

        bid = BidService.place_bid(db, auction.id, bidder.id, "10.01")

        assert bid.bid_amount == Decimal("10.01")
        assert bid.bidder_id == bidder.id
        stored = reload(db, auction.id)
        assert stored.current_highest_bid == Decimal("10.01")
        assert stored.current_highest_bidder_id == bidder.id
        assert bid_count(db, auction.id) == 1

    def test_equal_to_starting_price_rejected(self, db, seller, bidder, make_auction):
        auction = make_auction(seller, starting_price="10.00")

        with pytest.raises(StateConflictError) as exc_info:
            BidService.place_bid(db, auction.id, bidder.id, "10.00")

        assert exc_info.value.reason == "bid_too_low"
        assert bid_count(db, auction.id) == 0

    def test_scenario_outbid_then_lower_bid_rejected(self, db, seller, make_user, make_auction):
        b = make_user("b@example.com")
        c = make_user("c@example.com")
        auction = make_auction(seller, starting_price="10.00")

        BidService.place_bid(db, auction.id, b.id, "10.01")
        BidService.place_bid(db, auction.id, c.id, "15.00")
        with pytest.raises(StateConflictError):
            BidService.place_bid(db, auction.id, b.id, "12.00")

        stored = reload(db, auction.id)
        assert stored.current_highest_bid == Decimal("15.00")
        assert stored.current_highest_bidder_id == c.id
        assert bid_count(db, auction.id) == 2

    def test_leader_can_raise_own_bid(self, db, seller, bidder, make_auction):
        auction = make_auction(seller)

        BidService.place_bid(db, auction.id, bidder.id, "11.00")
        BidService.place_bid(db, auction.id, bidder.id, "12.00")

        assert reload(db, auction.id).current_highest_bid == Decimal("12.00")

    def test_seller_cannot_bid(self, db, seller, make_auction):
        auction = make_auction(seller)

        with pytest.raises(StateConflictError) as exc_info:
            BidService.place_bid(db, auction.id, seller.id, "50.00")

        assert exc_info.value.reason == "self_bid"

    def test_closed_auction_rejected(self, db, seller, bidder, make_auction):
        auction = make_auction(seller, status=AuctionStatus.CLOSED)

        with pytest.raises(StateConflictError) as exc_info:
            BidService.place_bid(db, auction.id, bidder.id, "50.00")

        assert exc_info.value.reason == "auction_not_active"

    def test_unknown_auction(self, db, bidder):
        with pytest.raises(NotFoundError):
            BidService.place_bid(db, "missing", bidder.id, "50.00")

    def test_invalid_amount(self, db, seller, bidder, make_auction):
        auction = make_auction(seller)

        with pytest.raises(ValidationError):
            BidService.place_bid(db, auction.id, bidder.id, "-3")

        with pytest.raises(ValidationError):
            BidService.place_bid(db, auction.id, bidder.id, "20.123")

    def test_missing_identity(self, db, seller, make_auction):
        auction = make_auction(seller)

        with pytest.raises(UnauthenticatedError):
            BidService.place_bid(db, auction.id, "", "50.00")

    def test_unknown_bidder(self, db, seller, make_auction):
        auction = make_auction(seller)

        with pytest.raises(UnauthenticatedError):
            BidService.place_bid(db, auction.id, "no-such-user", "50.00")

        assert bid_count(db, auction.id) == 0


class TestConflictRetry:

    def test_lost_race_is_retried(self, db, seller, bidder, make_auction, monkeypatch):
        auction = make_auction(seller)
        real_commit = db.commit
        calls = {"count": 0}

        def flaky_commit():
            calls["count"] += 1
            if calls["count"] == 1:
                raise StaleDataError("auctions row changed underneath us")
            real_commit()

        monkeypatch.setattr(db, "commit", flaky_commit)

        bid = BidService.place_bid(db, auction.id, bidder.id, "20.00", retry_config=FAST_RETRY)

        assert calls["count"] == 2
        assert bid.bid_amount == Decimal("20.00")
        assert bid_count(db, auction.id) == 1
        assert reload(db, auction.id).current_highest_bid == Decimal("20.00")

    def test_exhausted_retries_raise_conflict_and_write_nothing(
        self, db, seller, bidder, make_auction, monkeypatch
    ):
        auction = make_auction(seller)
        attempts = {"count": 0}

        def always_stale():
            attempts["count"] += 1
            raise StaleDataError("auctions row changed underneath us")

        monkeypatch.setattr(db, "commit", always_stale)

        with pytest.raises(ConflictError) as exc_info:
            BidService.place_bid(db, auction.id, bidder.id, "20.00", retry_config=FAST_RETRY)

        assert exc_info.value.retryable
        assert attempts["count"] == FAST_RETRY.max_attempts

        monkeypatch.undo()
        db.rollback()
        stored = reload(db, auction.id)
        assert stored.current_highest_bid is None
        assert stored.current_highest_bidder_id is None
        assert bid_count(db, auction.id) == 0


class TestBidQueries:

    def test_bid_history_newest_first(self, db, seller, make_user, make_auction):
        b = make_user()
        c = make_user()
        auction = make_auction(seller)
        BidService.place_bid(db, auction.id, b.id, "11.00")
        BidService.place_bid(db, auction.id, c.id, "12.00")
        BidService.place_bid(db, auction.id, b.id, "13.00")

        history = BidService.get_bid_history(db, auction.id)

        assert [h["bid_amount"] for h in history] == [Decimal("13.00"), Decimal("12.00"), Decimal("11.00")]
        assert history[0]["bidder_email"] == b.email

    def test_bid_history_unknown_auction(self, db):
        with pytest.raises(NotFoundError):
            BidService.get_bid_history(db, "missing")

    def test_user_bids_and_winning(self, db, seller, make_user, make_auction):
        b = make_user()
        c = make_user()
        lamp = make_auction(seller, title="Lamp")
        chair = make_auction(seller, title="Chair")
        BidService.place_bid(db, lamp.id, b.id, "11.00")
        BidService.place_bid(db, chair.id, b.id, "11.00")
        BidService.place_bid(db, chair.id, c.id, "12.00")

        assert len(BidService.list_user_bids(db, b.id)) == 2
        winning = BidService.list_winning_auctions(db, b.id)
        assert [a.id for a in winning] == [lamp.id]


class TestDeadline:

    def test_clock_read_after_row_lock(self, db, seller, bidder, make_auction, monkeypatch):
        """A bid that waits on the row lock past the deadline is rejected"""
        auction = make_auction(seller, end_time=utcnow() + timedelta(minutes=1))
        clock = {"now": utcnow()}
        monkeypatch.setattr(bid_service, "utcnow", lambda: clock["now"])

        locked_read = AuctionRepository.get_auction

        def lock_granted_after_deadline(self, auction_id, for_update=False):
            row = locked_read(self, auction_id, for_update=for_update)
            clock["now"] = auction.end_time + timedelta(seconds=1)
            return row

        monkeypatch.setattr(AuctionRepository, "get_auction", lock_granted_after_deadline)

        with pytest.raises(StateConflictError) as exc_info:
            BidService.place_bid(db, auction.id, bidder.id, "50.00")

        assert exc_info.value.reason == "auction_not_active"
        assert bid_count(db, auction.id) == 0
