"""
Bid Validator

Pure decision over an auction snapshot: either the bid is acceptable or it is
rejected for exactly one reason. No I/O, no mutation.
"""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from bidhouse.core.utils import parse_money
from bidhouse.models import Auction, AuctionStatus


class RejectionReason(str, enum.Enum):
    INVALID_AMOUNT = "invalid_amount"
    AUCTION_NOT_FOUND = "auction_not_found"
    AUCTION_NOT_ACTIVE = "auction_not_active"
    SELF_BID = "self_bid"
    BID_TOO_LOW = "bid_too_low"


@dataclass(frozen=True)
class BidRejection:
    reason: RejectionReason
    message: str
    detail: Dict[str, Any] = field(default_factory=dict)


def minimum_floor(auction: Auction) -> Decimal:
    """Amount a new bid must strictly exceed"""
    if auction.current_highest_bid is None:
        return auction.starting_price
    return max(auction.current_highest_bid, auction.starting_price)


def validate_bid(
    auction: Optional[Auction],
    bidder_id: str,
    bid_amount,
    now: datetime,
) -> Optional[BidRejection]:
    """
    Decide whether a bid is acceptable

    Checks, in order:
    1. Amount is a positive, finite, storable money value
    2. Auction exists
    3. Auction is active AND its end time has not passed (the clock is
       checked even when the stored status still says active)
    4. Bidder is not the seller
    5. Amount is strictly above max(current highest bid, starting price)

    Args:
        auction: Snapshot read inside the caller's transaction, or None
        bidder_id: Authenticated bidder
        bid_amount: Proposed amount (Decimal, int, float or numeric string)
        now: Current naive-UTC time

    Returns:
        None when accepted, otherwise the rejection
    """
    amount = parse_money(bid_amount)
    if amount is None:
        return BidRejection(
            RejectionReason.INVALID_AMOUNT,
            "Bid amount must be a positive number with at most 2 decimal places",
            {"bid_amount": str(bid_amount)},
        )

    if auction is None:
        return BidRejection(RejectionReason.AUCTION_NOT_FOUND, "Auction not found")

    if auction.status != AuctionStatus.ACTIVE:
        return BidRejection(
            RejectionReason.AUCTION_NOT_ACTIVE,
            f"Auction is {auction.status.value}",
            {"status": auction.status.value},
        )

    if auction.end_time <= now:
        return BidRejection(
            RejectionReason.AUCTION_NOT_ACTIVE,
            "Auction has ended",
            {"end_time": auction.end_time.isoformat()},
        )

    if auction.seller_id == bidder_id:
        return BidRejection(RejectionReason.SELF_BID, "Cannot bid on your own auction")

    floor = minimum_floor(auction)
    if amount <= floor:
        return BidRejection(
            RejectionReason.BID_TOO_LOW,
            f"Bid must be higher than {floor}",
            {"minimum_exclusive": str(floor)},
        )

    return None
