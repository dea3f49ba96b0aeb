"""
Database Models
"""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import models after Base is defined
from bidhouse.models.user import User  # noqa: E402
from bidhouse.models.auction import Auction, AuctionStatus  # noqa: E402
from bidhouse.models.bid import Bid  # noqa: E402

__all__ = ["Base", "User", "Auction", "AuctionStatus", "Bid"]
