"""Protean Engine runner for the ordering domain.

Only needed when events are processed asynchronously (PROTEAN_ENV=production).
Starts Engine workers that process order events:
- OutboxProcessor: polls the outbox table, publishes events to the broker
- StreamSubscriptions: reads broker streams, invokes the order projectors

Usage:
    python src/server.py
    python src/server.py --test-mode   # Process pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def main():
    parser = argparse.ArgumentParser(description="Order service Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Drain pending messages once and exit",
    )
    args = parser.parse_args()

    from ordering.domain import ordering

    ordering.init()
    engine = Engine(ordering, test_mode=args.test_mode)
    asyncio.run(engine.run())


if __name__ == "__main__":
    main()
