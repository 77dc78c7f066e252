"""Event model and the roles that produce, handle and drive events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Any


class EventType(IntEnum):
    """Kind of an incoming event."""

    UNKNOWN = 0
    MESSAGE = 1


@dataclass
class Event:
    """An incoming event: its kind, its text and source-specific metadata."""

    type: EventType = EventType.UNKNOWN
    text: str = ""
    meta: Any = None


class Fetcher(ABC):
    """Source of incoming events."""

    @abstractmethod
    def fetch(self, limit: int) -> list[Event]:
        """Return up to *limit* new events."""


class Processor(ABC):
    """Handler of events and producer of periodic notifications."""

    @abstractmethod
    def process(self, event: Event) -> None:
        """Handle one event."""

    @abstractmethod
    def disc_notif(self) -> None:
        """Run the discount notification loop."""

    @abstractmethod
    def week_sale_notif(self) -> None:
        """Run the daily deals notification loop."""

    @abstractmethod
    def sales_notif(self) -> None:
        """Run the seasonal sales notification loop."""


class Consumer(ABC):
    """Loop that pulls events and hands them to a processor."""

    @abstractmethod
    def start(self) -> None:
        """Run the consumer."""