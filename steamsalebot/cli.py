"""Command line entry point that runs the bot."""

from __future__ import annotations

import argparse
import logging
from collections.abc import Sequence

from steamsalebot.consumer import EventConsumer
from steamsalebot.errors import BotError
from steamsalebot.file_storage import FileStorage
from steamsalebot.processor import TelegramProcessor
from steamsalebot.telegram_client import TelegramClient

logger = logging.getLogger(__name__)

TG_BOT_HOST = "api.telegram.org"
STORAGE_PATH = "storage/db"
BATCH_SIZE = 100


def _build_consumer(token: str) -> EventConsumer:
    processor = TelegramProcessor(TelegramClient(TG_BOT_HOST, token), FileStorage(STORAGE_PATH))
    return EventConsumer(processor, processor, BATCH_SIZE)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the bot with the token given on the command line; return the exit status."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(message)s")
    parser = argparse.ArgumentParser(
        prog="steamsalebot", description="Telegram bot for Steam sale notifications."
    )
    parser.add_argument("-token", "--token", default="", help="The token to use")
    args = parser.parse_args(argv)

    if not args.token:
        logger.critical("You must provide a token")
        return 1

    consumer = _build_consumer(args.token)
    logger.info("Starting telegram bot")
    try:
        consumer.start()
    except BotError as err:
        logger.critical("%s", err)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())