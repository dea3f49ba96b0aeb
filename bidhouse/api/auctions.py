"""
Auction API Routes

Handles:
- Listing and viewing auctions
- Creating auctions
- Placing bids and reading bid history
- Closing expired auctions on demand
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bidhouse.api.dependencies import get_current_user_id
from bidhouse.infrastructure.database import get_db
from bidhouse.schemas import (
    AuctionListResponse,
    AuctionResponse,
    AuctionView,
    BidHistoryResponse,
    BidResponse,
    CreateAuctionRequest,
    PlaceBidRequest,
    RecentBid,
    SweepResponse,
)
from bidhouse.services import AuctionService, BidService, LifecycleService, ReadModel

router = APIRouter(prefix="/auctions", tags=["auctions"])


@router.get("", response_model=AuctionListResponse)
def list_auctions(db: Session = Depends(get_db)):
    """List active auctions, newest first"""
    auctions = ReadModel.list_active_auctions(db)
    return AuctionListResponse(auctions=auctions, total=len(auctions))


@router.post("", response_model=AuctionResponse, status_code=201)
def create_auction(
    request: CreateAuctionRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Create a new auction owned by the caller"""
    auction = AuctionService.create_auction(
        db=db,
        seller_id=user_id,
        title=request.title,
        description=request.description,
        starting_price=request.starting_price,
        end_time=request.end_time,
        image_url=request.image_url,
    )
    return AuctionResponse.model_validate(auction)


@router.post("/sweep", response_model=SweepResponse)
def sweep_expired_auctions(db: Session = Depends(get_db)):
    """Close every active auction whose end time has passed"""
    closed = LifecycleService.close_expired_auctions(db)
    return SweepResponse(
        message=f"Closed {len(closed)} expired auctions",
        closed_auction_ids=closed,
    )


@router.get("/{auction_id}", response_model=AuctionView)
def get_auction(auction_id: str, db: Session = Depends(get_db)):
    """
    Get one auction with seller, current leader and recent bids

    An auction past its end time is closed before it is returned.
    """
    return ReadModel.get_auction_view(db, auction_id)


@router.post("/{auction_id}/bids", response_model=BidResponse, status_code=201)
def place_bid(
    auction_id: str,
    request: PlaceBidRequest,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Place a bid as the caller"""
    bid = BidService.place_bid(
        db=db,
        auction_id=auction_id,
        bidder_id=user_id,
        bid_amount=request.bid_amount,
    )
    return BidResponse.model_validate(bid)


@router.get("/{auction_id}/bids", response_model=BidHistoryResponse)
def get_bid_history(
    auction_id: str,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """Bid history for an auction, newest first"""
    bids = BidService.get_bid_history(db, auction_id, limit=limit)
    return BidHistoryResponse(
        auction_id=auction_id,
        bids=[RecentBid(**bid) for bid in bids],
    )
