"""
Auction Repository

Typed reads and writes for users, auctions and bids. Holds no business rules;
transaction boundaries belong to the calling service.
"""
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, aliased

from bidhouse.models import Auction, AuctionStatus, Bid, User

SellerUser = aliased(User, name="seller_user")
LeaderUser = aliased(User, name="leader_user")


class AuctionRepository:
    """Persistence accessor bound to one session"""

    def __init__(self, db: Session):
        self.db = db

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------
    def get_user(self, user_id: str) -> Optional[User]:
        return self.db.get(User, user_id)

    def get_user_by_email(self, email: str) -> Optional[User]:
        return self.db.execute(
            select(User).where(User.email == email)
        ).scalar_one_or_none()

    def add_user(self, user: User) -> User:
        self.db.add(user)
        return user

    # ------------------------------------------------------------------
    # Auctions
    # ------------------------------------------------------------------
    def get_auction(self, auction_id: str, for_update: bool = False) -> Optional[Auction]:
        """
        Read one auction straight from the store

        populate_existing overwrites any copy already in the identity map, so
        callers always see the committed row. for_update adds a row lock on
        databases that support it.
        """
        query = (
            select(Auction)
            .where(Auction.id == auction_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            query = query.with_for_update()

        return self.db.execute(query).scalar_one_or_none()

    def add_auction(self, auction: Auction) -> Auction:
        self.db.add(auction)
        return auction

    def get_auction_with_emails(self, auction_id: str) -> Optional[Tuple[Auction, Optional[str], Optional[str]]]:
        """(auction, seller_email, highest_bidder_email) or None"""
        row = self.db.execute(
            select(Auction, SellerUser.email, LeaderUser.email)
            .outerjoin(SellerUser, Auction.seller_id == SellerUser.id)
            .outerjoin(LeaderUser, Auction.current_highest_bidder_id == LeaderUser.id)
            .where(Auction.id == auction_id)
            .execution_options(populate_existing=True)
        ).first()
        return tuple(row) if row else None

    def list_active_with_emails(self) -> List[Tuple[Auction, Optional[str], Optional[str]]]:
        """Active auctions, newest created first, with seller and leader emails"""
        rows = self.db.execute(
            select(Auction, SellerUser.email, LeaderUser.email)
            .outerjoin(SellerUser, Auction.seller_id == SellerUser.id)
            .outerjoin(LeaderUser, Auction.current_highest_bidder_id == LeaderUser.id)
            .where(Auction.status == AuctionStatus.ACTIVE)
            .order_by(Auction.created_at.desc())
            .execution_options(populate_existing=True)
        ).all()
        return [tuple(row) for row in rows]

    def list_seller_auctions(self, seller_id: str) -> List[Tuple[Auction, Optional[str], int]]:
        """(auction, highest_bidder_email, bid_count) for one seller, newest first"""
        bid_counts = (
            select(Bid.auction_id, func.count(Bid.id).label("bid_count"))
            .group_by(Bid.auction_id)
            .subquery()
        )
        rows = self.db.execute(
            select(Auction, LeaderUser.email, func.coalesce(bid_counts.c.bid_count, 0))
            .outerjoin(LeaderUser, Auction.current_highest_bidder_id == LeaderUser.id)
            .outerjoin(bid_counts, bid_counts.c.auction_id == Auction.id)
            .where(Auction.seller_id == seller_id)
            .order_by(Auction.created_at.desc())
            .execution_options(populate_existing=True)
        ).all()
        return [(auction, email, int(count)) for auction, email, count in rows]

    def list_winning_auctions(self, user_id: str) -> List[Auction]:
        return list(self.db.execute(
            select(Auction)
            .where(
                Auction.current_highest_bidder_id == user_id,
                Auction.status == AuctionStatus.ACTIVE,
            )
            .order_by(Auction.end_time.asc())
        ).scalars().all())

    def find_expired_auction_ids(self, now: datetime, auction_id: Optional[str] = None) -> List[str]:
        """Ids of active auctions whose end time has passed, row-locked"""
        query = (
            select(Auction.id)
            .where(Auction.status == AuctionStatus.ACTIVE, Auction.end_time <= now)
            .with_for_update()
        )
        if auction_id is not None:
            query = query.where(Auction.id == auction_id)

        return list(self.db.execute(query).scalars().all())

    def mark_closed(self, auction_ids: Sequence[str], now: datetime) -> int:
        """
        Flip the given auctions from active to closed

        The status guard keeps the transition one-directional, and the version
        bump invalidates any bid transaction that read the row before this.
        """
        if not auction_ids:
            return 0

        result = self.db.execute(
            update(Auction)
            .where(Auction.id.in_(auction_ids), Auction.status == AuctionStatus.ACTIVE)
            .values(
                status=AuctionStatus.CLOSED,
                updated_at=now,
                version=Auction.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # ------------------------------------------------------------------
    # Bids
    # ------------------------------------------------------------------
    def add_bid(self, bid: Bid) -> Bid:
        self.db.add(bid)
        return bid

    def count_bids(self, auction_id: str) -> int:
        return self.db.execute(
            select(func.count(Bid.id)).where(Bid.auction_id == auction_id)
        ).scalar_one()

    def recent_bids_with_emails(self, auction_id: str, limit: int) -> List[Tuple[Bid, Optional[str]]]:
        """
        Newest bids first

        Accepted bids on one auction strictly increase, so amount breaks ties
        between bids stamped with the same created_at.
        """
        rows = self.db.execute(
            select(Bid, User.email)
            .outerjoin(User, Bid.bidder_id == User.id)
            .where(Bid.auction_id == auction_id)
            .order_by(Bid.created_at.desc(), Bid.bid_amount.desc())
            .limit(limit)
        ).all()
        return [tuple(row) for row in rows]

    def list_user_bids(self, user_id: str, limit: int) -> List[Bid]:
        return list(self.db.execute(
            select(Bid)
            .where(Bid.bidder_id == user_id)
            .order_by(Bid.created_at.desc(), Bid.bid_amount.desc())
            .limit(limit)
        ).scalars().all())
