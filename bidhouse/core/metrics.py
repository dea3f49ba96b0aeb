"""
Prometheus metrics for monitoring
"""
import time
from functools import wraps

from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# ==================== HTTP Metrics ====================

http_requests_total = Counter(
    'bidhouse_http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'bidhouse_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint']
)

# ==================== Bid Metrics ====================

bids_total = Counter(
    'bidhouse_bids_total',
    'Bid placement attempts by outcome',
    ['outcome']  # accepted, rejected reason, conflict, store_unavailable
)

bid_conflict_retries_total = Counter(
    'bidhouse_bid_conflict_retries_total',
    'Bid transactions restarted after a concurrent write'
)

bid_placement_duration_seconds = Histogram(
    'bidhouse_bid_placement_duration_seconds',
    'Time to accept or reject a bid',
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0]
)

# ==================== Lifecycle Metrics ====================

auctions_created_total = Counter(
    'bidhouse_auctions_created_total',
    'Total auctions created'
)

auctions_closed_total = Counter(
    'bidhouse_auctions_closed_total',
    'Total auctions closed',
    ['trigger']  # sweep, on_read
)

sweep_duration_seconds = Histogram(
    'bidhouse_sweep_duration_seconds',
    'Time to run one expiry sweep',
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 5.0]
)


# ==================== Helper Functions ====================

def track_time(metric: Histogram):
    """Decorator to track execution time of a synchronous call"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return func(*args, **kwargs)
            finally:
                metric.observe(time.time() - start_time)
        return wrapper
    return decorator


def record_bid_outcome(outcome: str):
    bids_total.labels(outcome=outcome).inc()


def get_metrics() -> bytes:
    """Get current metrics in Prometheus format"""
    return generate_latest()


__all__ = [
    "CONTENT_TYPE_LATEST",
    "auctions_closed_total",
    "auctions_created_total",
    "bid_conflict_retries_total",
    "bid_placement_duration_seconds",
    "get_metrics",
    "http_request_duration_seconds",
    "http_requests_total",
    "record_bid_outcome",
    "sweep_duration_seconds",
    "track_time",
]
