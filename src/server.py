"""Protean Engine runner for the registrar domain.

In production event processing is async: notification handlers run in
the Engine instead of inside the request's unit of work.

Usage:
    PROTEAN_ENV=production python src/server.py
    python src/server.py --test-mode   # Drain pending messages and exit
"""

import argparse
import asyncio

from protean.server.engine import Engine


def _get_domain():
    from registrar.domain import registrar

    registrar.init()
    return registrar


async def run(test_mode: bool):
    engine = Engine(_get_domain(), test_mode=test_mode)
    await engine.run()


def main():
    parser = argparse.ArgumentParser(description="Registrar Engine runner")
    parser.add_argument(
        "--test-mode",
        action="store_true",
        help="Process pending messages once and exit",
    )
    args = parser.parse_args()

    asyncio.run(run(args.test_mode))


if __name__ == "__main__":
    main()
