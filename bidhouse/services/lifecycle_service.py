"""
Auction Lifecycle Service

Closes auctions whose end time has passed. The sweep is a convenience: bid
acceptance re-checks the clock itself, so a late sweep never lets a bid in.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from bidhouse.core.metrics import auctions_closed_total, sweep_duration_seconds, track_time
from bidhouse.core.utils import utcnow
from bidhouse.infrastructure.database import is_conflict_error
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.services.exceptions import ConflictError, StoreUnavailableError

logger = logging.getLogger(__name__)


class LifecycleService:
    """Moves auctions from active to closed"""

    @staticmethod
    @track_time(sweep_duration_seconds)
    def close_expired_auctions(db: Session, now: Optional[datetime] = None) -> List[str]:
        """
        Close every active auction whose end time has passed

        Safe to run concurrently with itself and with bid placement: the rows
        are locked while they are flipped and the UPDATE only touches rows
        that are still active, so each auction is closed exactly once.

        Args:
            db: Database session
            now: Reference time (defaults to current UTC)

        Returns:
            IDs of the auctions closed by this call (empty when nothing was due)

        Raises:
            ConflictError: lost a deadlock or serialization race (retryable)
            StoreUnavailableError: database failure
        """
        closed = LifecycleService._close(db, now or utcnow())

        if closed:
            auctions_closed_total.labels(trigger="sweep").inc(len(closed))
            logger.info(
                f"Closed {len(closed)} expired auctions",
                extra={"closed_count": len(closed)},
            )

        return closed

    @staticmethod
    def close_if_expired(db: Session, auction_id: str, now: Optional[datetime] = None) -> bool:
        """
        Close one auction if it is active and past its end time

        Used on read so a past-deadline auction is never shown as active.

        Returns:
            True when this call closed the auction
        """
        closed = LifecycleService._close(db, now or utcnow(), auction_id=auction_id)

        if closed:
            auctions_closed_total.labels(trigger="on_read").inc()
            logger.info(
                f"Closed expired auction {auction_id} on access",
                extra={"auction_id": auction_id},
            )

        return bool(closed)

    @staticmethod
    def _close(db: Session, now: datetime, auction_id: Optional[str] = None) -> List[str]:
        repo = AuctionRepository(db)

        try:
            expired_ids = repo.find_expired_auction_ids(now, auction_id=auction_id)
            if not expired_ids:
                db.commit()
                return []

            repo.mark_closed(expired_ids, now)
            db.commit()
        except DBAPIError as e:
            db.rollback()
            if is_conflict_error(e):
                logger.warning(f"Auction close lost a race with another transaction: {e}")
                raise ConflictError(
                    "Auctions are being updated concurrently; please try again",
                    {"auction_id": auction_id} if auction_id else {},
                ) from e
            logger.error(f"Store failure while closing auctions: {e}")
            raise StoreUnavailableError("The auction store is unavailable") from e

        # Loaded copies predate the bulk UPDATE
        db.expire_all()
        return expired_ids
