"""Protean Engine runner for the marketplace.

In production (``PROTEAN_ENV=production``) events are processed
asynchronously; the Engine delivers OrderPlaced and OrderDelivered to the
notification handler outside the request's unit of work.

Usage:
    PROTEAN_ENV=production python src/server.py
"""

import asyncio

from marketplace.domain import marketplace
from marketplace.utils.logging import configure_logging
from protean.server.engine import Engine


async def run():
    marketplace.init()
    await Engine(marketplace).run()


def main():
    configure_logging()
    asyncio.run(run())


if __name__ == "__main__":
    main()
