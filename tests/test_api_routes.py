"""
API Routes Tests

Tests all endpoints:
- Auctions (create, list, get, bids, sweep)
- Users (register, seller auctions, bids, winning)
- Admin (init-db, health, metrics)
"""
from datetime import timedelta

from bidhouse.core.utils import utcnow


def auth(user):
    return {"X-User-Id": user.id}


def create_payload(**overrides):
    payload = {
        "title": "Test Auction",
        "description": "Test Description",
        "starting_price": "10.00",
        "end_time": (utcnow() + timedelta(hours=2)).isoformat(),
    }
    payload.update(overrides)
    return payload


# ============================================================================
# AUCTION TESTS
# ============================================================================
class TestAuctionRoutes:
    """Test auction-related endpoints"""

    def test_create_auction_success(self, client, seller):
        response = client.post("/auctions", json=create_payload(), headers=auth(seller))

        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Test Auction"
        assert data["starting_price"] == "10.00"
        assert data["status"] == "active"
        assert data["seller_id"] == seller.id
        assert data["current_highest_bid"] is None

    def test_create_auction_requires_identity(self, client):
        response = client.post("/auctions", json=create_payload())

        assert response.status_code == 401
        assert response.json()["error"] == "unauthenticated"

    def test_create_auction_invalid_price(self, client, seller):
        response = client.post("/auctions", json=create_payload(starting_price="-100"), headers=auth(seller))

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"]["field"] == "starting_price"

    def test_create_auction_in_the_past(self, client, seller):
        payload = create_payload(end_time=(utcnow() - timedelta(minutes=1)).isoformat())

        response = client.post("/auctions", json=payload, headers=auth(seller))

        assert response.status_code == 400
        assert "future" in response.json()["message"]

    def test_create_auction_malformed_end_time(self, client, seller):
        response = client.post(
            "/auctions", json=create_payload(end_time="next tuesday"), headers=auth(seller)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"]["field"] == "end_time"

    def test_list_auctions(self, client, seller, make_auction):
        make_auction(seller)

        response = client.get("/auctions")

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["auctions"][0]["seller_email"] == seller.email

    def test_get_auction(self, client, seller, make_auction):
        auction = make_auction(seller)

        response = client.get(f"/auctions/{auction.id}")

        assert response.status_code == 200
        data = response.json()
        assert data["id"] == auction.id
        assert data["bid_count"] == 0
        assert data["recent_bids"] == []
        assert "time_remaining" in data

    def test_get_auction_not_found(self, client):
        response = client.get("/auctions/99999")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_sweep(self, client, seller, make_auction):
        expired = make_auction(seller, end_time=utcnow() - timedelta(minutes=1))

        response = client.post("/auctions/sweep")

        assert response.status_code == 200
        assert response.json()["closed_auction_ids"] == [expired.id]


# ============================================================================
# BID TESTS
# ============================================================================
class TestBidRoutes:
    """Test bid-related endpoints"""

    def test_place_bid(self, client, seller, bidder, make_auction):
        auction = make_auction(seller, starting_price="10.00")

        response = client.post(
            f"/auctions/{auction.id}/bids", json={"bid_amount": "10.01"}, headers=auth(bidder)
        )

        assert response.status_code == 201
        data = response.json()
        assert data["bid_amount"] == "10.01"
        assert data["bidder_id"] == bidder.id

        view = client.get(f"/auctions/{auction.id}").json()
        assert view["current_highest_bid"] == "10.01"
        assert view["highest_bidder_email"] == bidder.email

    def test_bid_too_low(self, client, seller, bidder, make_auction):
        auction = make_auction(seller, starting_price="10.00")

        response = client.post(
            f"/auctions/{auction.id}/bids", json={"bid_amount": "10.00"}, headers=auth(bidder)
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "state_conflict"
        assert body["detail"]["reason"] == "bid_too_low"
        assert body["detail"]["minimum_exclusive"] == "10.00"
        assert "Retry-After" not in response.headers

    def test_self_bid(self, client, seller, make_auction):
        auction = make_auction(seller)

        response = client.post(
            f"/auctions/{auction.id}/bids", json={"bid_amount": "50.00"}, headers=auth(seller)
        )

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "self_bid"

    def test_bid_requires_identity(self, client, seller, make_auction):
        auction = make_auction(seller)

        response = client.post(f"/auctions/{auction.id}/bids", json={"bid_amount": "50.00"})

        assert response.status_code == 401

    def test_bid_on_expired_auction(self, client, seller, bidder, make_auction):
        auction = make_auction(seller, end_time=utcnow() - timedelta(seconds=1))

        response = client.post(
            f"/auctions/{auction.id}/bids", json={"bid_amount": "50.00"}, headers=auth(bidder)
        )

        assert response.status_code == 409
        assert response.json()["detail"]["reason"] == "auction_not_active"
        assert client.get(f"/auctions/{auction.id}").json()["status"] == "closed"

    def test_non_numeric_bid_amount(self, client, seller, bidder, make_auction):
        auction = make_auction(seller)

        response = client.post(
            f"/auctions/{auction.id}/bids", json={"bid_amount": "abc"}, headers=auth(bidder)
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"]["field"] == "bid_amount"
        assert "message" in body

    def test_missing_bid_amount(self, client, seller, bidder, make_auction):
        auction = make_auction(seller)

        response = client.post(f"/auctions/{auction.id}/bids", json={}, headers=auth(bidder))

        assert response.status_code == 400
        assert response.json()["detail"]["field"] == "bid_amount"

    def test_bid_history(self, client, seller, bidder, make_auction):
        auction = make_auction(seller)
        for amount in ("11.00", "12.00"):
            client.post(f"/auctions/{auction.id}/bids", json={"bid_amount": amount}, headers=auth(bidder))

        response = client.get(f"/auctions/{auction.id}/bids")

        assert response.status_code == 200
        assert [b["bid_amount"] for b in response.json()["bids"]] == ["12.00", "11.00"]


# ============================================================================
# USER TESTS
# ============================================================================
class TestUserRoutes:
    """Test user-related endpoints"""

    def test_register(self, client):
        response = client.post("/users/register", json={"email": "dana@example.com", "password": "password123"})

        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "dana@example.com"
        assert "password_hash" not in data

    def test_register_duplicate(self, client):
        payload = {"email": "erin@example.com", "password": "password123"}
        client.post("/users/register", json=payload)

        response = client.post("/users/register", json=payload)

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    def test_my_auctions(self, client, seller, bidder, make_auction):
        auction = make_auction(seller)
        client.post(f"/auctions/{auction.id}/bids", json={"bid_amount": "11.00"}, headers=auth(bidder))

        response = client.get("/users/me/auctions", headers=auth(seller))

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["auctions"][0]["total_bids"] == 1
        assert data["auctions"][0]["highest_bidder_email"] == bidder.email

    def test_user_bids_and_winning(self, client, seller, bidder, make_auction):
        auction = make_auction(seller)
        client.post(f"/auctions/{auction.id}/bids", json={"bid_amount": "11.00"}, headers=auth(bidder))

        bids = client.get(f"/users/{bidder.id}/bids").json()
        winning = client.get(f"/users/{bidder.id}/winning").json()

        assert bids["total_bids"] == 1
        assert winning["winning_count"] == 1
        assert winning["auctions"][0]["id"] == auction.id


# ============================================================================
# ADMIN TESTS
# ============================================================================
class TestAdminRoutes:
    """Test admin and monitoring endpoints"""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["components"]["database"] == "healthy"

    def test_init_db_is_repeatable(self, client):
        assert client.post("/admin/init-db").status_code == 200
        assert client.post("/admin/init-db").status_code == 200

    def test_metrics(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "bidhouse_http_requests_total" in response.text

    def test_trace_id_echoed(self, client):
        response = client.get("/health", headers={"X-Trace-ID": "trace-123"})

        assert response.headers["X-Trace-ID"] == "trace-123"
