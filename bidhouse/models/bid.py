"""
Bid Model
"""
from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import relationship

from bidhouse.core.utils import utcnow
from bidhouse.models import Base
from bidhouse.models.user import new_id


class Bid(Base):
    """Immutable record of one offer on one auction"""

    __tablename__ = "bids"
    __table_args__ = (
        CheckConstraint("bid_amount > 0", name="ck_bids_amount_positive"),
        Index("ix_bids_auction_created", "auction_id", "created_at"),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    auction_id = Column(String(36), ForeignKey("auctions.id", ondelete="CASCADE"), nullable=False, index=True)
    bidder_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    bid_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    auction = relationship("Auction", back_populates="bids")
    bidder = relationship("User")

    def __repr__(self):
        return f"<Bid(id={self.id}, auction_id={self.auction_id}, amount={self.bid_amount})>"

