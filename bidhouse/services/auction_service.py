"""
Auction Service - Business Logic

Handles:
- Auction creation
- Seller listings
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from bidhouse.core.metrics import auctions_created_total
from bidhouse.core.utils import parse_money, to_naive_utc, utcnow
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.models import Auction, AuctionStatus
from bidhouse.schemas.auction import AuctionResponse, SellerAuctionSummary
from bidhouse.services.exceptions import (
    StoreUnavailableError,
    UnauthenticatedError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 255
MAX_IMAGE_URL_LENGTH = 500


class AuctionService:
    """
    Service for auction-related business logic

    Centralizes auction operations so they can be:
    - Reused across different routes
    - Tested independently
    """

    @staticmethod
    def create_auction(
        db: Session,
        seller_id: str,
        title: str,
        starting_price,
        end_time: datetime,
        description: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> Auction:
        """
        Create a new auction

        Business rules:
        - Title is required (max 255 characters)
        - Starting price must be a positive amount with at most 2 decimals
        - End time must be in the future
        - Image URL, when given, is at most 500 characters

        Args:
            db: Database session
            seller_id: Authenticated seller ID
            title: Auction title
            starting_price: Floor for the first bid
            end_time: Deadline (naive values are taken as UTC)
            description: Optional description
            image_url: Optional image URL

        Returns:
            Created auction

        Raises:
            UnauthenticatedError: seller_id is empty or unknown
            ValidationError: If validation fails
        """
        if not seller_id:
            raise UnauthenticatedError("A caller identity is required to create an auction")

        title = (title or "").strip()
        if not title:
            raise ValidationError("Title is required", {"field": "title"})
        if len(title) > MAX_TITLE_LENGTH:
            raise ValidationError(
                f"Title must be at most {MAX_TITLE_LENGTH} characters", {"field": "title"}
            )

        price = parse_money(starting_price)
        if price is None:
            raise ValidationError(
                "Starting price must be a positive number with at most 2 decimal places",
                {"field": "starting_price"},
            )

        if end_time is None:
            raise ValidationError("End time is required", {"field": "end_time"})
        end_time = to_naive_utc(end_time)
        now = utcnow()
        if end_time <= now:
            raise ValidationError("End time must be in the future", {"field": "end_time"})

        description = (description or "").strip() or None
        image_url = (image_url or "").strip() or None
        if image_url and len(image_url) > MAX_IMAGE_URL_LENGTH:
            raise ValidationError(
                f"Image URL must be at most {MAX_IMAGE_URL_LENGTH} characters",
                {"field": "image_url"},
            )

        repo = AuctionRepository(db)
        try:
            if repo.get_user(seller_id) is None:
                raise UnauthenticatedError(
                    "Caller identity does not match a registered user",
                    {"user_id": seller_id},
                )

            auction = repo.add_auction(Auction(
                seller_id=seller_id,
                title=title,
                description=description,
                image_url=image_url,
                starting_price=price,
                end_time=end_time,
                status=AuctionStatus.ACTIVE,
                created_at=now,
                updated_at=now,
            ))
            db.commit()
        except DBAPIError as e:
            db.rollback()
            logger.error(f"Store failure while creating auction: {e}")
            raise StoreUnavailableError("The auction store is unavailable") from e
        except UnauthenticatedError:
            db.rollback()
            raise

        auctions_created_total.inc()
        logger.info(
            f"Created auction {auction.id}: {auction.title}",
            extra={"auction_id": auction.id, "user_id": seller_id},
        )

        return auction

    @staticmethod
    def list_seller_auctions(db: Session, seller_id: str) -> List[SellerAuctionSummary]:
        """
        List a seller's auctions, newest first, with leader email and bid count

        Args:
            db: Database session
            seller_id: Seller ID

        Returns:
            Seller auction summaries (all statuses)
        """
        return [
            SellerAuctionSummary(
                **AuctionResponse.model_validate(auction).model_dump(),
                highest_bidder_email=highest_bidder_email,
                total_bids=bid_count,
            )
            for auction, highest_bidder_email, bid_count
            in AuctionRepository(db).list_seller_auctions(seller_id)
        ]
