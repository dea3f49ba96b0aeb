"""
Business Logic Services
"""
from bidhouse.services.auction_service import AuctionService
from bidhouse.services.bid_service import BidService
from bidhouse.services.exceptions import (
    ConflictError,
    MarketplaceError,
    NotFoundError,
    StateConflictError,
    StoreUnavailableError,
    UnauthenticatedError,
    ValidationError,
)
from bidhouse.services.lifecycle_service import LifecycleService
from bidhouse.services.read_model import ReadModel
from bidhouse.services.sweeper import AuctionSweeper
from bidhouse.services.user_service import UserService

__all__ = [
    "AuctionService",
    "BidService",
    "LifecycleService",
    "ReadModel",
    "AuctionSweeper",
    "UserService",
    "MarketplaceError",
    "NotFoundError",
    "ValidationError",
    "StateConflictError",
    "ConflictError",
    "UnauthenticatedError",
    "StoreUnavailableError",
]
