"""Pydantic schemas for Bid resources"""
from datetime import datetime
from decimal import Decimal
from typing import List

from pydantic import BaseModel, ConfigDict

from bidhouse.schemas.auction import AuctionResponse, RecentBid


class PlaceBidRequest(BaseModel):
    bid_amount: Decimal


class BidResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    auction_id: str
    bidder_id: str
    bid_amount: Decimal
    created_at: datetime


class BidHistoryResponse(BaseModel):
    auction_id: str
    bids: List[RecentBid]


class UserBidsResponse(BaseModel):
    user_id: str
    total_bids: int
    bids: List[BidResponse]


class WinningAuctionsResponse(BaseModel):
    user_id: str
    winning_count: int
    auctions: List[AuctionResponse]
