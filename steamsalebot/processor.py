"""Telegram event processor and the bot's notification loops."""

from __future__ import annotations

import json
import logging
import re
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from os import PathLike
from typing import NoReturn
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from steamsalebot.commands import CommandHandler
from steamsalebot.errors import BotError, wrap
from steamsalebot.events import Event, EventType, Fetcher, Processor
from steamsalebot.storage import Game, Storage, User
from steamsalebot.telegram_client import GameData, GameInfo, TelegramClient, Update

logger = logging.getLogger(__name__)


def _moscow_zone() -> tzinfo:
    try:
        return ZoneInfo("Europe/Moscow")
    except ZoneInfoNotFoundError:
        return timezone(timedelta(hours=3), "MSK")


MOSCOW = _moscow_zone()

DISC_USER_DELAY = 30
DISC_RETRY_DELAY = 5 * 60
DISC_ROUND_DELAY = 30 * 60
WEEK_SALE_HOUR = 10
SALES_REST_DELAY = 720 * 60 * 60
SALES_FILE = "sales.json"
ADMIN_CHAT_ID = 2134561992
MSG_SALES_DONE = "SalesNotif: все уведомления отправлены, обновите распродажи и перезапустите бота"
WEEK_SALE_HEADER = "Ежедневные скидки:"

BEFORE_START = "before-start"
ON_START = "on-start"
BEFORE_END = "before-end"

_SALE_TIME_FORMAT = "%Y-%m-%d %H:%M"
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
_DIGITS = re.compile(r"\d+")
_DAY = timedelta(hours=24)


class UnknownEventTypeError(BotError):
    """Raised for an event of a kind the processor does not handle."""

    def __init__(self, msg: str = "unknown event type") -> None:
        super().__init__(msg)


class UnknownMetaTypeError(BotError):
    """Raised when an event carries no Telegram metadata."""

    def __init__(self, msg: str = "unknown meta type") -> None:
        super().__init__(msg)


@dataclass(frozen=True)
class Meta:
    """Where a Telegram message came from."""

    chat_id: int
    username: str


@dataclass(frozen=True)
class Sale:
    """A seasonal store sale with its start and end times."""

    name: str
    start: datetime
    end: datetime


@dataclass(frozen=True)
class SaleNotice:
    """A notification due at *when* about a sale; *kind* says which one."""

    when: datetime
    kind: str
    name: str
    end: datetime


def event_from_update(update: Update) -> Event:
    """Turn a Telegram update into an event."""
    message = update.message
    if message is None:
        return Event(type=EventType.MESSAGE, text="")
    return Event(
        type=EventType.MESSAGE,
        text=message.text,
        meta=Meta(chat_id=message.chat_id, username=message.username),
    )


def meta_of(event: Event) -> Meta:
    """Return the Telegram metadata of *event*."""
    if not isinstance(event.meta, Meta):
        raise wrap("can't get meta", UnknownMetaTypeError())
    return event.meta


def parse_price(text: str) -> int:
    """Return the first run of digits in *text* as a number, or 0 if there is none."""
    match = _DIGITS.search(text)
    return int(match.group()) if match else 0


def _parse_moscow_time(text: str) -> datetime:
    return datetime.strptime(text, _SALE_TIME_FORMAT).replace(tzinfo=MOSCOW)


def load_sales(path: str | PathLike[str]) -> list[Sale]:
    """Read sales from a JSON list of ``{"name", "start", "end"}`` objects.

    Times are Moscow wall-clock ``YYYY-MM-DD HH:MM``; entries with unreadable
    times are logged and skipped.
    """
    try:
        with open(path, encoding="utf-8") as fh:
            raws = json.load(fh)
    except OSError as err:
        raise wrap("SalesNotif: can't open sales.json", err) from err
    except ValueError as err:
        raise wrap("SalesNotif: can't decode sales.json", err) from err
    if raws is None:
        return []
    if not isinstance(raws, list) or not all(isinstance(raw, dict) for raw in raws):
        raise BotError("SalesNotif: can't decode sales.json: expected a list of objects")

    sales = []
    for raw in raws:
        start_text = raw.get("start", "")
        end_text = raw.get("end", "")
        try:
            start = _parse_moscow_time(start_text)
        except (ValueError, TypeError) as err:
            logger.warning("SalesNotif: parse start %r: %s", start_text, err)
            continue
        try:
            end = _parse_moscow_time(end_text)
        except (ValueError, TypeError) as err:
            logger.warning("SalesNotif: parse end %r: %s", end_text, err)
            continue
        sales.append(Sale(name=raw.get("name", ""), start=start, end=end))
    return sales


def sale_notices(sales: Iterable[Sale], now: datetime) -> list[SaleNotice]:
    """Return the notices of *sales* still due after *now*, earliest first.

    Each sale gives a notice a day before its start, one at its start and one
    a day before its end. Identical notices are given once.
    """
    notices = []
    for sale in sales:
        start = sale.start.astimezone(timezone.utc)
        end = sale.end.astimezone(timezone.utc)
        notices.extend(
            (
                SaleNotice(start - _DAY, BEFORE_START, sale.name, end),
                SaleNotice(start, ON_START, sale.name, end),
                SaleNotice(end - _DAY, BEFORE_END, sale.name, end),
            )
        )

    seen = set()
    future = []
    for notice in sorted(notices, key=lambda n: n.when):
        key = (notice.when, notice.kind, notice.name)
        if notice.when > now and key not in seen:
            seen.add(key)
            future.append(notice)
    return future


def _moscow_stamp(moment: datetime) -> str:
    local = moment.astimezone(MOSCOW)
    return f"{local.day:02d} {_MONTHS[local.month - 1]} {local:%H:%M}"


def format_sale_notice(notice: SaleNotice) -> str:
    """Render a sale notice as a chat message with Moscow times."""
    if notice.kind == BEFORE_START:
        return f"🟡 Завтра начнётся {notice.name} ({_moscow_stamp(notice.when)} МСК)"
    if notice.kind == ON_START:
        return f"🟢 Началась {notice.name}! Идёт до {_moscow_stamp(notice.end)} (МСК)"
    if notice.kind == BEFORE_END:
        return f"🔴 Завтра закончится {notice.name} ({_moscow_stamp(notice.when)} МСК)"
    raise ValueError(f"unknown sale notice kind: {notice.kind!r}")


def week_sale_message(games: Iterable[GameInfo]) -> str:
    """Render the list of daily deals as a chat message."""
    return WEEK_SALE_HEADER + "".join(
        f"\n\nНазвание: {game.title}"
        f"\nЦена до: {game.old_price}"
        f"\nЦена после: {game.final_price}"
        f"\n[Открыть steam]({game.url})"
        for game in games
    )


class TelegramProcessor(Fetcher, Processor):
    """Fetches Telegram updates, answers them and sends periodic notifications."""

    def __init__(self, client: TelegramClient, storage: Storage) -> None:
        self.client = client
        self.storage = storage
        self.offset = 0
        self.sales_path: str | PathLike[str] = SALES_FILE
        self.admin_chat_id = ADMIN_CHAT_ID
        self.commands = CommandHandler(client, storage)

    def fetch(self, limit: int) -> list[Event]:
        """Return up to *limit* new events and move past them."""
        try:
            updates = self.client.updates(self.offset, limit)
        except BotError as err:
            raise wrap("can't get events", err) from err
        if not updates:
            return []
        self.offset = updates[-1].id + 1
        return [event_from_update(update) for update in updates]

    def process(self, event: Event) -> None:
        """Handle one event; only messages are understood."""
        if event.type == EventType.MESSAGE:
            self._process_message(event)
            return
        raise wrap("can't process message", UnknownEventTypeError())

    def _process_message(self, event: Event) -> None:
        try:
            meta = meta_of(event)
        except BotError as err:
            raise wrap("can't process message", err) from err
        try:
            self.commands.handle(event.text, meta.chat_id, meta.username)
        except BotError as err:
            raise wrap("can't process message", err) from err

    def _users_or_empty(self) -> list[tuple[User, list[Game]]]:
        try:
            return self.storage.users()
        except BotError as err:
            logger.error("can't get users from storage: %s", err)
            return []

    def _deliver(self, user: User, msg: str, note: str) -> None:
        logger.info("%s %s %s", note, user.user_name, user.user_settings.chat_id)
        try:
            self.client.send_message(user.user_settings.chat_id, msg)
        except BotError as err:
            logger.error("can't send to %d: %s", user.user_settings.chat_id, err)

    def _broadcast(self, users: Iterable[User], msg: str, note: str) -> None:
        with ThreadPoolExecutor() as pool:
            for user in users:
                pool.submit(self._deliver, user, msg, note)

    def disc_notif(self) -> NoReturn:
        """Check tracked games for price drops every half hour, forever."""
        while True:
            self._check_discounts()
            time.sleep(DISC_ROUND_DELAY)

    def _game_with_retry(self, game_id: str) -> GameData:
        try:
            return self.client.game(game_id)
        except BotError as err:
            logger.error("can't get game: %s", err)
        time.sleep(DISC_RETRY_DELAY)
        try:
            return self.client.game(game_id)
        except BotError:
            return GameData()

    def _check_discounts(self) -> None:
        for user, games in self._users_or_empty():
            time.sleep(DISC_USER_DELAY)
            msg = ""
            for game in games:
                current = self._game_with_retry(game.id)
                final = parse_price(current.price.final)
                stored = parse_price(game.price)
                if current.price.final:
                    continue
                user.game = Game(name=game.name, id=game.id, price=current.price.final)
                try:
                    self.storage.save(user)
                except BotError as err:
                    logger.error("Ошибка сохранения DiscNotif: %s", err)
                if final < stored:
                    msg += f"Скидка на игру {game.name}: {current.price.final} \n"
            if msg and user.user_settings.discounts:
                logger.info("Отправлено сообщение о скидке %s %s", user.user_name, msg)
                try:
                    self.client.send_message(user.user_settings.chat_id, msg)
                except BotError as err:
                    logger.error("can't send message: %s", err)

    def week_sale_notif(self) -> NoReturn:
        """Send the daily deals every day after 10:00 Moscow time, forever."""
        while True:
            now = datetime.now(MOSCOW)
            target = now.replace(hour=WEEK_SALE_HOUR, minute=0, second=0, microsecond=0)
            if now > target:
                target += _DAY
                self._notify_week_sales()
            time.sleep(max((target - datetime.now(MOSCOW)).total_seconds(), 0.0))

    def _notify_week_sales(self) -> None:
        users = self._users_or_empty()
        try:
            games = self.client.sale()
        except BotError as err:
            logger.error("can't get WeekSale: %s", err)
            games = []
        msg = week_sale_message(games)
        recipients = [user for user, _ in users if user.user_settings.free_weekend]
        self._broadcast(recipients, msg, "Отправлено сообщение о скидках недели")

    def sales_notif(self) -> NoReturn:
        """Announce the sales listed in the sales file as their notices fall due."""
        while True:
            sales = load_sales(self.sales_path)
            for notice in sale_notices(sales, datetime.now(timezone.utc)):
                delay = (notice.when - datetime.now(timezone.utc)).total_seconds()
                logger.info(
                    "SalesNotif: sleeping %.0fs until %s of %s", delay, notice.kind, notice.name
                )
                time.sleep(max(delay, 0.0))
                msg = format_sale_notice(notice)
                try:
                    users = self.storage.users()
                except BotError as err:
                    raise wrap("SalesNotif: can't load users", err) from err
                self._broadcast(
                    (user for user, _ in users), msg, "Отправлено сообщение о распродаже"
                )
            try:
                self.client.send_message(self.admin_chat_id, MSG_SALES_DONE)
            except BotError:
                logger.error("SalesNotif: can't send to admin")
            time.sleep(SALES_REST_DELAY)