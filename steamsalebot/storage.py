"""Stored data model and the storage interface."""

from __future__ import annotations

import hashlib
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from steamsalebot.errors import BotError


class NotSavedGameError(BotError):
    """Raised when a user has no saved games."""

    def __init__(self, msg: str = "no save Game") -> None:
        super().__init__(msg)


@dataclass
class Game:
    """A tracked game and the last price seen for it."""

    name: str = ""
    id: str = ""
    price: str = ""


@dataclass
class UserSettings:
    """A user's chat and notification switches."""

    chat_id: int = 0
    discounts: bool = False
    free_weekend: bool = False
    sales: bool = False


@dataclass
class User:
    """A user together with their settings and the game an operation concerns."""

    user_name: str = ""
    user_settings: UserSettings = field(default_factory=UserSettings)
    game: Game = field(default_factory=Game)

    def hash(self) -> str:
        """Return the SHA-1 hex digest of the game id followed by the user name."""
        digest = hashlib.sha1()
        digest.update(self.game.id.encode("utf-8"))
        digest.update(self.user_name.encode("utf-8"))
        return digest.hexdigest()


class Storage(ABC):
    """Persistence of users, their settings and their tracked games."""

    @abstractmethod
    def save(self, user: User) -> None:
        """Store *user.game* for *user.user_name*."""

    @abstractmethod
    def check_all_games(self, user_name: str) -> list[Game]:
        """Return every game stored for *user_name*."""

    @abstractmethod
    def remove(self, user: User) -> None:
        """Delete *user.game* for *user.user_name*."""

    @abstractmethod
    def create_settings(self, user: User) -> None:
        """Create default settings for *user* unless they already exist."""

    @abstractmethod
    def update_settings(self, user_name: str, settings: list[str]) -> None:
        """Toggle the numbered switches listed in *settings*."""

    @abstractmethod
    def settings(self, user_name: str) -> User:
        """Return the stored settings of *user_name*."""

    @abstractmethod
    def users(self) -> list[tuple[User, list[Game]]]:
        """Return every user with their stored games."""