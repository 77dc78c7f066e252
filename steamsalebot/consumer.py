"""Event loop that pulls updates and hands them to a processor."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Iterable
from typing import NoReturn

from steamsalebot.errors import BotError
from steamsalebot.events import Consumer, Event, Fetcher, Processor

logger = logging.getLogger(__name__)

RETRY_ATTEMPTS = 3
RETRY_DELAY = 60
BACKOFF_DELAY = 180
IDLE_DELAY = 1


class EventConsumer(Consumer):
    """Fetches events in batches, retrying on failure, and processes them."""

    def __init__(self, fetcher: Fetcher, processor: Processor, batch_size: int) -> None:
        self.fetcher = fetcher
        self.processor = processor
        self.batch_size = batch_size

    def start(self) -> NoReturn:
        """Start the notification loops in the background and consume events forever."""
        for notifier in (
            self.processor.disc_notif,
            self.processor.week_sale_notif,
            self.processor.sales_notif,
        ):
            threading.Thread(target=notifier, daemon=True).start()

        while True:
            events = self._fetch_with_retries()
            if events is None:
                continue
            if not events:
                time.sleep(IDLE_DELAY)
                continue
            self.handle_events(events)

    def _fetch_with_retries(self) -> list[Event] | None:
        try:
            return self.fetcher.fetch(self.batch_size)
        except BotError as err:
            logger.error("Error fetching events: %s", err)

        for attempt in range(1, RETRY_ATTEMPTS + 1):
            logger.info("Retry %d/%d fetching events...", attempt, RETRY_ATTEMPTS)
            time.sleep(RETRY_DELAY)
            try:
                return self.fetcher.fetch(self.batch_size)
            except BotError as err:
                logger.error("Error fetching events: %s", err)

        logger.warning("All retries failed. Waiting before next attempt...")
        time.sleep(BACKOFF_DELAY)
        return None

    def handle_events(self, events: Iterable[Event]) -> None:
        """Process each event in turn; a failing event is logged and skipped."""
        for event in events:
            try:
                self.processor.process(event)
            except Exception:
                logger.exception("Error processing event")