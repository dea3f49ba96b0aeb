"""
Bid Service - Business Logic

Handles:
- Bid acceptance (validate + insert + advance highest-bid pointer, atomically)
- Conflict retries
- Bid history queries
"""
import logging
import time
from typing import List, Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from bidhouse.core.config import get_settings
from bidhouse.core.metrics import (
    bid_conflict_retries_total,
    bid_placement_duration_seconds,
    record_bid_outcome,
)
from bidhouse.core.retry import RetryConfig, retry_sync
from bidhouse.core.utils import parse_money, utcnow
from bidhouse.infrastructure.database import is_conflict_error
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.models import Auction, Bid
from bidhouse.services.bid_validator import BidRejection, RejectionReason, validate_bid
from bidhouse.services.exceptions import (
    ConflictError,
    NotFoundError,
    StateConflictError,
    StoreUnavailableError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class WriteConflict(Exception):
    """A concurrent transaction changed the auction between read and commit"""


def rejection_to_error(rejection: BidRejection):
    """Map a validator rejection onto the error taxonomy"""
    if rejection.reason == RejectionReason.AUCTION_NOT_FOUND:
        return NotFoundError(rejection.message, rejection.detail)
    if rejection.reason == RejectionReason.INVALID_AMOUNT:
        return ValidationError(rejection.message, rejection.detail)
    return StateConflictError(rejection.message, rejection.reason.value, rejection.detail)


class BidService:
    """
    Service for bid-related business logic

    The read-validate-write sequence in place_bid is the only place the
    highest-bid pointer changes.
    """

    @staticmethod
    def place_bid(
        db: Session,
        auction_id: str,
        bidder_id: str,
        bid_amount,
        retry_config: Optional[RetryConfig] = None,
    ) -> Bid:
        """
        Place a bid

        Each attempt runs in its own transaction:
        1. Read the auction row (row-locked, bypassing the identity map)
        2. Validate against that fresh row
        3. Insert the bid and move the pointer; the auction UPDATE is a
           compare-and-swap on its version
        4. Commit

        A lost race rolls back and restarts from step 1. When attempts run
        out the caller gets ConflictError; nothing is written.

        Args:
            db: Database session (must not have a transaction in progress
                that the caller still needs)
            auction_id: Auction ID
            bidder_id: Authenticated bidder ID
            bid_amount: Proposed amount
            retry_config: Overrides the configured retry budget

        Returns:
            The persisted Bid

        Raises:
            UnauthenticatedError: bidder_id is empty or unknown
            ValidationError: malformed amount
            NotFoundError: auction does not exist
            StateConflictError: auction not active, self-bid or bid too low
            ConflictError: retries exhausted under contention
            StoreUnavailableError: database failure
        """
        if not bidder_id:
            raise UnauthenticatedError("A caller identity is required to place a bid")

        config = retry_config or RetryConfig.from_settings(get_settings())
        start_time = time.time()

        try:
            bid = retry_sync(
                BidService._attempt_bid,
                db,
                auction_id,
                bidder_id,
                bid_amount,
                config=config,
                retry_on_exceptions=(WriteConflict,),
                on_retry=lambda attempt, exc: bid_conflict_retries_total.inc(),
            )
        except WriteConflict as e:
            record_bid_outcome("conflict")
            logger.warning(
                f"Bid on auction {auction_id} abandoned after {config.max_attempts} attempts",
                extra={"auction_id": auction_id, "bidder_id": bidder_id},
            )
            raise ConflictError(
                "The auction is receiving many bids right now; please try again",
                {"auction_id": auction_id, "attempts": config.max_attempts},
            ) from e
        except StateConflictError as e:
            record_bid_outcome(e.reason)
            logger.info(
                f"Bid rejected: {e.message}",
                extra={"auction_id": auction_id, "bidder_id": bidder_id, "reason": e.reason},
            )
            raise
        except (NotFoundError, ValidationError, UnauthenticatedError) as e:
            record_bid_outcome(e.code)
            logger.info(
                f"Bid rejected: {e.message}",
                extra={"auction_id": auction_id, "bidder_id": bidder_id, "reason": e.code},
            )
            raise
        except StoreUnavailableError:
            record_bid_outcome("store_unavailable")
            raise
        finally:
            bid_placement_duration_seconds.observe(time.time() - start_time)

        record_bid_outcome("accepted")
        logger.info(
            f"Bid {bid.id} accepted: {bid.bid_amount} on auction {auction_id}",
            extra={"auction_id": auction_id, "bidder_id": bidder_id, "bid_id": bid.id},
        )
        return bid

    @staticmethod
    def _attempt_bid(db: Session, auction_id: str, bidder_id: str, bid_amount) -> Bid:
        """One transaction: read, validate, write, commit"""
        repo = AuctionRepository(db)

        try:
            if repo.get_user(bidder_id) is None:
                raise UnauthenticatedError(
                    "Caller identity does not match a registered user",
                    {"user_id": bidder_id},
                )

            auction = repo.get_auction(auction_id, for_update=True)
            # Read the clock only once the row lock is held
            now = utcnow()

            rejection = validate_bid(auction, bidder_id, bid_amount, now)
            if rejection is not None:
                raise rejection_to_error(rejection)

            amount = parse_money(bid_amount)
            bid = BidService._record_bid(repo, auction, bidder_id, amount, now)

            db.commit()
            return bid

        except (StaleDataError, DBAPIError) as e:
            db.rollback()
            if is_conflict_error(e):
                raise WriteConflict(str(e)) from e
            logger.error(
                f"Store failure while placing bid on auction {auction_id}: {e}",
                extra={"auction_id": auction_id, "bidder_id": bidder_id},
            )
            raise StoreUnavailableError("The auction store is unavailable") from e
        except BaseException:
            db.rollback()
            raise

    @staticmethod
    def _record_bid(repo: AuctionRepository, auction: Auction, bidder_id: str, amount, now) -> Bid:
        """Insert the bid and advance the pointer in the open transaction"""
        bid = repo.add_bid(Bid(
            auction_id=auction.id,
            bidder_id=bidder_id,
            bid_amount=amount,
            created_at=now,
        ))

        auction.current_highest_bid = amount
        auction.current_highest_bidder_id = bidder_id
        auction.updated_at = now

        # Flush here so a stale version surfaces before commit bookkeeping
        repo.db.flush()
        return bid

    @staticmethod
    def get_bid_history(db: Session, auction_id: str, limit: int = 50) -> List[dict]:
        """
        Get bid history for an auction, newest first

        Raises:
            NotFoundError: auction does not exist
        """
        repo = AuctionRepository(db)
        if repo.get_auction(auction_id) is None:
            raise NotFoundError("Auction not found", {"auction_id": auction_id})

        return [
            {
                "id": bid.id,
                "bid_amount": bid.bid_amount,
                "created_at": bid.created_at,
                "bidder_email": email,
            }
            for bid, email in repo.recent_bids_with_emails(auction_id, limit)
        ]

    @staticmethod
    def list_user_bids(db: Session, user_id: str, limit: Optional[int] = None) -> List[Bid]:
        """Get all bids by a user, newest first"""
        limit = limit or get_settings().USER_BIDS_LIMIT
        return AuctionRepository(db).list_user_bids(user_id, limit)

    @staticmethod
    def list_winning_auctions(db: Session, user_id: str) -> List[Auction]:
        """Active auctions where the user currently holds the highest bid"""
        return AuctionRepository(db).list_winning_auctions(user_id)
