"""
Auction Model
"""
import enum

from sqlalchemy import (
    CheckConstraint,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from bidhouse.core.utils import utcnow
from bidhouse.models import Base
from bidhouse.models.user import new_id


class AuctionStatus(str, enum.Enum):
    """Auction status enum"""
    ACTIVE = "active"
    CLOSED = "closed"
    CANCELLED = "cancelled"  # reserved, no operation sets it


class Auction(Base):
    """Auction database model"""

    __tablename__ = "auctions"
    __table_args__ = (
        CheckConstraint("starting_price > 0", name="ck_auctions_starting_price_positive"),
        CheckConstraint(
            "current_highest_bid IS NULL OR current_highest_bid > starting_price",
            name="ck_auctions_highest_bid_above_start",
        ),
        CheckConstraint(
            "(current_highest_bid IS NULL AND current_highest_bidder_id IS NULL) OR "
            "(current_highest_bid IS NOT NULL AND current_highest_bidder_id IS NOT NULL)",
            name="ck_auctions_highest_bid_has_bidder",
        ),
    )

    id = Column(String(36), primary_key=True, default=new_id)
    seller_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    starting_price = Column(Numeric(10, 2), nullable=False)
    current_highest_bid = Column(Numeric(10, 2), nullable=True)
    current_highest_bidder_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    end_time = Column(DateTime, nullable=False, index=True)
    status = Column(
        SQLEnum(
            AuctionStatus,
            name="auction_status",
            native_enum=False,
            create_constraint=True,
            length=20,
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=AuctionStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    # Every UPDATE is a compare-and-swap on version; a lost race raises StaleDataError
    __mapper_args__ = {"version_id_col": version}

    seller = relationship("User", foreign_keys=[seller_id])
    highest_bidder = relationship("User", foreign_keys=[current_highest_bidder_id])
    bids = relationship(
        "Bid",
        back_populates="auction",
        order_by="Bid.created_at.desc()",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self):
        return (f"<Auction(id={self.id}, title='{self.title}', status='{self.status.value}', "
                f"highest={self.current_highest_bid})>")

