"""Pydantic schemas for Auction resources"""
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from bidhouse.models.auction import AuctionStatus


class CreateAuctionRequest(BaseModel):
    title: str
    description: Optional[str] = None
    starting_price: Decimal
    end_time: datetime
    image_url: Optional[str] = None


class AuctionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    seller_id: str
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    starting_price: Decimal
    current_highest_bid: Optional[Decimal] = None
    current_highest_bidder_id: Optional[str] = None
    end_time: datetime
    status: AuctionStatus
    created_at: datetime
    updated_at: datetime


class AuctionSummary(AuctionResponse):
    """Listing row: auction with seller and leader emails"""
    seller_email: Optional[str] = None
    highest_bidder_email: Optional[str] = None


class RecentBid(BaseModel):
    id: str
    bid_amount: Decimal
    created_at: datetime
    bidder_email: Optional[str] = None


class AuctionView(AuctionSummary):
    """Detail page: summary plus recent bids"""
    bid_count: int = 0
    time_remaining: str
    recent_bids: List[RecentBid] = Field(default_factory=list)


class SellerAuctionSummary(AuctionResponse):
    """Seller dashboard row"""
    highest_bidder_email: Optional[str] = None
    total_bids: int = 0


class AuctionListResponse(BaseModel):
    auctions: List[AuctionSummary]
    total: int


class SellerAuctionListResponse(BaseModel):
    auctions: List[SellerAuctionSummary]
    total: int


class SweepResponse(BaseModel):
    message: str
    closed_auction_ids: List[str]
