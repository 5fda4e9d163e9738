"""Discipline — main entry point.

Starts all subsystems:
1. Database initialization (and first-run seed)
2. Transport (Telegram by default)
"""

import asyncio
import logging

from discipline import tracker
from discipline.commands import dispatch
from discipline.transport import IncomingMessage
from discipline.transport.telegram import TelegramTransport, set_message_handler

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s — %(message)s",
    datefmt="%H:%M:%S",
)
log = logging.getLogger("discipline")


async def handle_message(msg: IncomingMessage) -> list[str]:
    """Central message handler — called by all transports."""
    log.info("%s message from %d: %s", msg.transport, msg.user_id, msg.text[:40])
    return dispatch(msg.text)


async def main():
    """Boot sequence."""
    log.info("=" * 50)
    log.info("Discipline starting up...")
    log.info("=" * 50)

    # 1. Database
    tracker.setup()
    log.info("Database ready")

    # 2. Transport
    transport = TelegramTransport()
    set_message_handler(handle_message)
    await transport.start()
    log.info("Transport started: %s", transport.name)

    # Keep running
    try:
        while True:
            await asyncio.sleep(3600)
    except (KeyboardInterrupt, SystemExit, asyncio.CancelledError):
        log.info("Shutting down...")
        await transport.stop()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
