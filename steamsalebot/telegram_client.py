"""HTTP client for the Telegram Bot API and the Steam store."""

from __future__ import annotations

import json
import posixpath
from dataclasses import dataclass, field
from typing import Any

import requests
from bs4 import BeautifulSoup

from steamsalebot.errors import BotError, wrap

GET_UPDATES_METHOD = "getUpdates"
SEND_MESSAGE_METHOD = "sendMessage"
STEAM_APP_DETAILS_URL = "https://store.steampowered.com/api/appdetails?appids={}&cc=ru&l=ru"
STEAM_WEEKLONG_DEALS_URL = "https://store.steampowered.com/search/?filter=weeklongdeals"
FREE_PRICE = "бесплатно"

_TIMEOUT = 60


@dataclass
class IncomingMessage:
    """A chat message sent to the bot."""

    text: str = ""
    username: str = ""
    chat_id: int = 0


@dataclass
class Update:
    """One entry returned by getUpdates."""

    id: int = 0
    message: IncomingMessage | None = None


@dataclass
class GamePrice:
    """Formatted prices of a game before and after discount."""

    initial: str = ""
    final: str = ""


@dataclass
class GameData:
    """Store details of a game."""

    name: str = ""
    is_free: bool = False
    description: str = ""
    languages: str = ""
    price: GamePrice = field(default_factory=GamePrice)


@dataclass
class GameInfo:
    """One row of a store search result."""

    title: str = ""
    old_price: str = ""
    final_price: str = ""
    url: str = ""


def _update_from_dict(item: dict[str, Any]) -> Update:
    raw = item.get("message")
    message = None
    if raw is not None:
        message = IncomingMessage(
            text=raw.get("text", ""),
            username=(raw.get("from") or {}).get("username", ""),
            chat_id=(raw.get("chat") or {}).get("id", 0),
        )
    return Update(id=item.get("update_id", 0), message=message)


def parse_updates(body: bytes | str) -> list[Update]:
    """Decode a getUpdates response body."""
    try:
        payload = json.loads(body)
        return [_update_from_dict(item) for item in payload.get("result") or []]
    except (ValueError, AttributeError, TypeError) as err:
        raise wrap("can't decode updates", err) from err


def parse_game_response(body: bytes | str, game_id: str) -> GameData:
    """Decode an appdetails response body for *game_id*.

    A missing final price reads as free; a missing initial price equals the final one.
    """
    try:
        payload = json.loads(body)
        entry = payload.get(game_id) if isinstance(payload, dict) else None
        if not entry or not entry.get("success"):
            raise BotError("game not found or unsuccessful response")
        data = entry.get("data") or {}
        price = data.get("price_overview") or {}
        final = price.get("final_formatted") or FREE_PRICE
        initial = price.get("initial_formatted") or final
        return GameData(
            name=data.get("name", ""),
            is_free=bool(data.get("is_free", False)),
            description=data.get("short_description", ""),
            languages=data.get("supported_languages", ""),
            price=GamePrice(initial=initial, final=final),
        )
    except (ValueError, AttributeError, TypeError) as err:
        raise wrap("can't decode game", err) from err


def _text(row: Any, selector: str) -> str:
    return "".join(el.get_text() for el in row.select(selector)).strip()


def parse_games_sale(body: bytes | str) -> list[GameInfo]:
    """Extract the games listed on a store search page."""
    soup = BeautifulSoup(body, "html.parser")
    games = []
    for row in soup.select(".search_result_row"):
        final_price = _text(row, ".discount_final_price")
        if not final_price:
            final_price = " ".join(_text(row, ".search_price").split())
        games.append(
            GameInfo(
                title=_text(row, ".title"),
                old_price=_text(row, ".discount_original_price"),
                final_price=final_price,
                url=row.get("href", ""),
            )
        )
    return games


class TelegramClient:
    """Talks to the Telegram Bot API on *host* and to the Steam store."""

    def __init__(self, host: str, token: str) -> None:
        self.host = host
        self.base_path = "bot" + token
        self._session = requests.Session()

    def _get(self, url: str, **kwargs: Any) -> bytes:
        try:
            response = self._session.get(url, timeout=_TIMEOUT, **kwargs)
        except requests.RequestException as err:
            raise wrap("can't do request", err) from err
        return response.content

    def _tg_request(self, method: str, params: dict[str, str]) -> bytes:
        url = f"https://{self.host}/{posixpath.join(self.base_path, method)}"
        return self._get(url, params=params)

    def _steam_request(self, url: str) -> bytes:
        return self._get(url, headers={"Accept-Language": "ru"})

    def updates(self, offset: int, limit: int) -> list[Update]:
        """Return updates starting at *offset*, at most *limit* of them."""
        try:
            body = self._tg_request(GET_UPDATES_METHOD, {"offset": str(offset), "limit": str(limit)})
            return parse_updates(body)
        except BotError as err:
            raise wrap("can't get updates", err) from err

    def send_message(self, chat_id: int, text: str) -> None:
        """Send *text* to *chat_id* with Markdown formatting."""
        params = {"chat_id": str(chat_id), "text": text, "parse_mode": "Markdown"}
        try:
            self._tg_request(SEND_MESSAGE_METHOD, params)
        except BotError as err:
            raise wrap("can't send message", err) from err

    def game(self, game_id: str) -> GameData:
        """Return the store details of *game_id*."""
        try:
            body = self._steam_request(STEAM_APP_DETAILS_URL.format(game_id))
        except BotError as err:
            raise wrap("can't import game", err) from err
        return parse_game_response(body, game_id)

    def sale(self) -> list[GameInfo]:
        """Return the games in the current week-long deals."""
        try:
            body = self._steam_request(STEAM_WEEKLONG_DEALS_URL)
        except BotError as err:
            raise wrap("can't import game", err) from err
        return parse_games_sale(body)