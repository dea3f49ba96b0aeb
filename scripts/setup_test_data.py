"""
Setup Test Data

Creates demo users, auctions and bids through the service layer, so every
row passes the same validation as real traffic.

Run with: python -m scripts.setup_test_data [--auctions N] [--bids N]
"""
import argparse
import random
from datetime import timedelta
from decimal import Decimal

from sqlalchemy import text

from bidhouse.core.utils import utcnow
from bidhouse.infrastructure.database import get_session_factory, init_db
from bidhouse.infrastructure.repository import AuctionRepository
from bidhouse.services import (
    AuctionService,
    BidService,
    StateConflictError,
    UserService,
)

DEMO_PASSWORD = "password123"


def setup_test_data(num_users: int = 10, num_auctions: int = 20, num_bids: int = 200):
    """
    Create test data for manual and performance testing

    Args:
        num_users: Number of users to create
        num_auctions: Number of auctions to create
        num_bids: Number of bid attempts (rejected ones are skipped)
    """
    print("\n🔧 Setting up test data...")
    print(f"   Users: {num_users}")
    print(f"   Auctions: {num_auctions}")
    print(f"   Bids: {num_bids}")

    init_db()
    db = get_session_factory()()

    try:
        print("\n🗑️  Clearing existing data...")
        db.execute(text("DELETE FROM bids"))
        db.execute(text("DELETE FROM auctions"))
        db.execute(text("DELETE FROM users"))
        db.commit()

        user_ids = [
            UserService.register_user(db, f"user{i + 1}@example.com", DEMO_PASSWORD).id
            for i in range(num_users)
        ]
        print(f"   ✅ Created {num_users} users (password: {DEMO_PASSWORD})")

        auction_ids = []
        for i in range(num_auctions):
            auction = AuctionService.create_auction(
                db=db,
                seller_id=user_ids[i % len(user_ids)],
                title=f"Test Auction {i + 1}",
                description=f"Demo listing number {i + 1}",
                starting_price=Decimal("10.00") + i,
                end_time=utcnow() + timedelta(hours=1 + i),
            )
            auction_ids.append(auction.id)
        print(f"   ✅ Created {num_auctions} auctions")

        accepted = 0
        for i in range(num_bids):
            auction_id = random.choice(auction_ids)
            auction = AuctionRepository(db).get_auction(auction_id)
            db.commit()
            amount = (auction.current_highest_bid or auction.starting_price) + Decimal(random.randint(1, 500)) / 100
            try:
                BidService.place_bid(db, auction_id, random.choice(user_ids), amount)
                accepted += 1
            except StateConflictError:
                # Seller picked as bidder
                continue
        print(f"   ✅ Placed {accepted}/{num_bids} bids")

        print("\n" + "=" * 70)
        print("✅ Test data setup complete!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the auction database")
    parser.add_argument("--users", type=int, default=10)
    parser.add_argument("--auctions", type=int, default=20)
    parser.add_argument("--bids", type=int, default=200)
    args = parser.parse_args()

    print("This will delete all existing users, auctions and bids.")
    confirm = input("\nContinue? (yes/no): ").strip().lower()

    if confirm == "yes":
        setup_test_data(num_users=args.users, num_auctions=args.auctions, num_bids=args.bids)
    else:
        print("Cancelled.")
