"""
Pydantic schemas for API request/response validation
"""
from bidhouse.schemas.auction import (
    AuctionListResponse,
    AuctionResponse,
    AuctionSummary,
    AuctionView,
    CreateAuctionRequest,
    RecentBid,
    SellerAuctionListResponse,
    SellerAuctionSummary,
    SweepResponse,
)
from bidhouse.schemas.bid import (
    BidHistoryResponse,
    BidResponse,
    PlaceBidRequest,
    UserBidsResponse,
    WinningAuctionsResponse,
)
from bidhouse.schemas.user import RegisterRequest, UserResponse

__all__ = [
    # Auctions
    "AuctionListResponse",
    "AuctionResponse",
    "AuctionSummary",
    "AuctionView",
    "CreateAuctionRequest",
    "RecentBid",
    "SellerAuctionListResponse",
    "SellerAuctionSummary",
    "SweepResponse",
    # Bids
    "BidHistoryResponse",
    "BidResponse",
    "PlaceBidRequest",
    "UserBidsResponse",
    "WinningAuctionsResponse",
    # Users
    "RegisterRequest",
    "UserResponse",
]
