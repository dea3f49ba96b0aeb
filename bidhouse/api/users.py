"""
User API Routes
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bidhouse.api.dependencies import get_current_user_id
from bidhouse.infrastructure.database import get_db
from bidhouse.schemas import (
    AuctionResponse,
    BidResponse,
    RegisterRequest,
    SellerAuctionListResponse,
    UserBidsResponse,
    UserResponse,
    WinningAuctionsResponse,
)
from bidhouse.services import AuctionService, BidService, UserService

router = APIRouter(prefix="/users", tags=["users"])


@router.post("/register", response_model=UserResponse, status_code=201)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Create an account"""
    user = UserService.register_user(db, request.email, request.password)
    return UserResponse.model_validate(user)


@router.get("/me/auctions", response_model=SellerAuctionListResponse)
def get_my_auctions(
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """The caller's own auctions, all statuses"""
    auctions = AuctionService.list_seller_auctions(db, user_id)
    return SellerAuctionListResponse(auctions=auctions, total=len(auctions))


@router.get("/{user_id}/auctions", response_model=SellerAuctionListResponse)
def get_user_auctions(user_id: str, db: Session = Depends(get_db)):
    auctions = AuctionService.list_seller_auctions(db, user_id)
    return SellerAuctionListResponse(auctions=auctions, total=len(auctions))


@router.get("/{user_id}/bids", response_model=UserBidsResponse)
def get_user_bids(
    user_id: str,
    limit: Optional[int] = Query(None, ge=1, le=500),
    db: Session = Depends(get_db),
):
    """All bids by a user, newest first"""
    bids = BidService.list_user_bids(db, user_id, limit=limit)
    return UserBidsResponse(
        user_id=user_id,
        total_bids=len(bids),
        bids=[BidResponse.model_validate(bid) for bid in bids],
    )


@router.get("/{user_id}/winning", response_model=WinningAuctionsResponse)
def get_winning_auctions(user_id: str, db: Session = Depends(get_db)):
    """Active auctions where the user holds the highest bid"""
    auctions = BidService.list_winning_auctions(db, user_id)
    return WinningAuctionsResponse(
        user_id=user_id,
        winning_count=len(auctions),
        auctions=[AuctionResponse.model_validate(a) for a in auctions],
    )
