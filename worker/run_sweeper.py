"""
Sweeper Entry Point

Closes expired auctions outside the API process.

Run with:
    python -m worker.run_sweeper            # loop every SWEEP_INTERVAL_SECONDS
    python -m worker.run_sweeper --once     # single pass, then exit
"""
import argparse
import asyncio
import logging
import signal

from bidhouse.core.logging_config import setup_logging
from bidhouse.infrastructure.database import get_session_factory
from bidhouse.services import AuctionSweeper

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Close expired auctions")
    parser.add_argument("--once", action="store_true", help="Run a single sweep and exit")
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between sweeps (default: SWEEP_INTERVAL_SECONDS)",
    )
    return parser.parse_args(argv)


async def run_forever(sweeper: AuctionSweeper):
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops
            pass

    await sweeper.start()
    await stop_event.wait()
    await sweeper.stop()


def main(argv=None):
    args = parse_args(argv)
    setup_logging()

    sweeper = AuctionSweeper(
        get_session_factory(),
        interval_seconds=args.interval,
    )

    if args.once:
        closed = sweeper.sweep_once()
        logger.info(f"Sweep finished, closed {len(closed)} auctions", extra={"closed_count": len(closed)})
        return 0

    asyncio.run(run_forever(sweeper))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
