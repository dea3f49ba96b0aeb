"""
Auction Read Model

Assembles display views from the repository. Reads only, apart from the
opportunistic close that runs before a single auction is shown.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from bidhouse.core.config import get_settings
from bidhouse.core.utils import format_time_remaining, utcnow
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.schemas.auction import AuctionResponse, AuctionSummary, AuctionView, RecentBid
from bidhouse.services.exceptions import NotFoundError
from bidhouse.services.lifecycle_service import LifecycleService


def _summary_fields(auction, seller_email, highest_bidder_email) -> dict:
    return {
        **AuctionResponse.model_validate(auction).model_dump(),
        "seller_email": seller_email,
        "highest_bidder_email": highest_bidder_email,
    }


class ReadModel:
    """Auction views for display"""

    @staticmethod
    def get_auction_view(db: Session, auction_id: str, recent_limit: Optional[int] = None) -> AuctionView:
        """
        Get one auction with seller, leader and its most recent bids

        Closes the auction first if its deadline passed, so the view never
        labels a finished auction as active.

        Raises:
            NotFoundError: auction does not exist
        """
        recent_limit = recent_limit or get_settings().RECENT_BIDS_LIMIT
        now = utcnow()

        LifecycleService.close_if_expired(db, auction_id, now=now)

        repo = AuctionRepository(db)
        row = repo.get_auction_with_emails(auction_id)
        if row is None:
            raise NotFoundError("Auction not found", {"auction_id": auction_id})

        auction, seller_email, highest_bidder_email = row
        recent_bids = [
            RecentBid(
                id=bid.id,
                bid_amount=bid.bid_amount,
                created_at=bid.created_at,
                bidder_email=email,
            )
            for bid, email in repo.recent_bids_with_emails(auction_id, recent_limit)
        ]

        return AuctionView(
            **_summary_fields(auction, seller_email, highest_bidder_email),
            bid_count=repo.count_bids(auction_id),
            time_remaining=format_time_remaining(auction.end_time, now),
            recent_bids=recent_bids,
        )

    @staticmethod
    def list_active_auctions(db: Session) -> List[AuctionSummary]:
        """
        List active auctions, newest created first

        Expired auctions the sweep has not reached yet are closed first so
        they drop out of the listing.
        """
        LifecycleService.close_expired_auctions(db)

        return [
            AuctionSummary(**_summary_fields(auction, seller_email, highest_bidder_email))
            for auction, seller_email, highest_bidder_email
            in AuctionRepository(db).list_active_with_emails()
        ]
