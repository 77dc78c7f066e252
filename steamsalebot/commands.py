"""Chat command handling: replies, pending prompts and per-command actions."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from enum import Enum

from steamsalebot.errors import BotError, wrap
from steamsalebot.storage import Game, Storage, User, UserSettings
from steamsalebot.telegram_client import GameData, TelegramClient

logger = logging.getLogger(__name__)

START_CMD = "/start"
HELP_CMD = "/help"
ADD_CMD = "/add"
SETTINGS_CMD = "/settings"
CHECK_CMD = "/check"
DONATE_CMD = "/donate"
DELETE_CMD = "/delete"
MY_GAMES_CMD = "/my_games"

MSG_HELP = """
*Команды бота:*
/start - перезапуск бота  
/help - посмотреть команды  
/add - добавить игру для уведомлений  
/delete - удалить игру для уведомлений  
/my\\_games - посмотреть список добавленных игр  
/settings - настройки уведомлений  
/check - проверить актуальную информацию о любой игре  
/donate - поддержать автора  

Чтобы быстро узнать ID игры в Steam, откройте страницу игры в браузере, и ID будет отображаться в URL страницы.  

Если что-то не работает или хотите что-то предложить, обратитесь к автору бота.
"""

MSG_HELLO = (
    "Привет! Это бот для уведомлений о скидках, распродажах, бесплатных выходных в Steam. \n"
    + MSG_HELP
)
MSG_DONATE = (
    "Проект полностью бесплатный и держится на энтузиазме автора, "
    "если хотите его поддержать, свяжитесь с автором бота."
)
MSG_SUCCESS_IMPORT = "Игра сохранена: "
MSG_ERR_IMPORT = "Ошибка сохранения игры, неправильный id"
MSG_NO_SAVED_PAGES = "Нет сохраненых игр"
MSG_DELETE_GAME = "Игра успешно удалена: "
MSG_SEND_ID = "Отправьте id игры"
MSG_NOT_EXIST = "Игра не найдена"
MSG_SUCCESS_EDIT = "Успешно изменено"
MSG_WRONG_ARGS = "Не правильное кол-во аргументов"

_EXIT_WORD = "exit"
_LANG_FOOTNOTE = re.compile(r"(?:<strong>\*</strong>)|(?:<br><strong>\*</strong>.*)")
_INTEGER = re.compile(r"[+-]?[0-9]+")


class _Pending(Enum):
    ADD = "add"
    DELETE = "delete"
    CHECK = "check"
    SETTINGS = "settings"


@contextmanager
def _wrapping(msg: str) -> Iterator[None]:
    try:
        yield
    except BotError as err:
        raise wrap(msg, err) from err


def _yes_no(flag: bool) -> str:
    return "Да" if flag else "Нет"


def clean_languages(languages: str) -> str:
    """Strip the store's full-audio footnote markers from a language list."""
    return _LANG_FOOTNOTE.sub("", languages)


def format_settings(settings: UserSettings) -> str:
    """Render a user's notification switches as a chat message."""
    return (
        "*Настройки уведомлений:*\n"
        f"1. Распродажи: *{_yes_no(settings.sales)}* \n"
        f"2. Ежедневные скидки: *{_yes_no(settings.free_weekend)}* \n"
        f"3. Скидки ваших игр: *{_yes_no(settings.discounts)}* \n\n"
        "Чтобы изменить настроки напишите номера которые хотите отключить или включить "
        "через запятую\n\nЧтобы выйти без изменений напишите \"exit\" "
    )


class CommandHandler:
    """Answers chat commands and the replies to the bot's own prompts."""

    def __init__(self, client: TelegramClient, storage: Storage) -> None:
        self.client = client
        self.storage = storage
        self._pending: dict[int, _Pending] = {}
        self._commands: dict[str, Callable[[int, str], None]] = {
            HELP_CMD: self._send_help,
            START_CMD: self._send_start,
            ADD_CMD: self._prompter(_Pending.ADD),
            SETTINGS_CMD: self._send_settings,
            DONATE_CMD: self._send_donate,
            CHECK_CMD: self._prompter(_Pending.CHECK),
            DELETE_CMD: self._prompter(_Pending.DELETE),
            MY_GAMES_CMD: self._send_my_games,
        }
        self._actions: dict[_Pending, Callable[[int, str, str], None]] = {
            _Pending.ADD: self.add_import,
            _Pending.DELETE: self.delete_game,
            _Pending.CHECK: lambda chat_id, text, _user: self._send_check(chat_id, text),
            _Pending.SETTINGS: self._update_settings,
        }

    def handle(self, text: str, chat_id: int, username: str) -> None:
        """Handle one message: a reply to a pending prompt or a command."""
        text = text.strip()
        logger.info("got new command: %s from %s", text, username)
        if self.in_queue_cmd(chat_id, text, username):
            return
        command = self._commands.get(text)
        if command is not None:
            command(chat_id, username)

    def in_queue_cmd(self, chat_id: int, text: str, username: str) -> bool:
        """Treat *text* as the answer to the chat's pending prompt, if there is one.

        Returns True when a pending prompt consumed the message.
        """
        pending = self._pending.pop(chat_id, None)
        if pending is None:
            return False
        self._actions[pending](chat_id, text, username)
        return True

    def add_import(self, chat_id: int, game_id: str, username: str) -> None:
        """Look up *game_id* in the store and start tracking it for *username*."""
        with _wrapping("can't to command: add game"):
            try:
                data = self.client.game(game_id)
            except BotError as err:
                logger.info("can't import game %s: %s", game_id, err)
                self.client.send_message(chat_id, MSG_ERR_IMPORT)
                return
            user = User(
                user_name=username,
                game=Game(name=data.name, id=game_id, price=data.price.final),
            )
            self.storage.save(user)
            self.client.send_message(chat_id, MSG_SUCCESS_IMPORT + data.name)

    def delete_game(self, chat_id: int, game_id: str, username: str) -> None:
        """Stop tracking *game_id* for *username*."""
        try:
            data = self.client.game(game_id)
        except BotError:
            data = GameData()
        user = User(user_name=username, game=Game(id=game_id, name=data.name))
        try:
            self.storage.remove(user)
        except FileNotFoundError:
            self.client.send_message(chat_id, MSG_NOT_EXIST)
            return
        except BotError as err:
            logger.warning("can't remove game %s of %s: %s", game_id, username, err)
        self.client.send_message(chat_id, MSG_DELETE_GAME + data.name)

    def _prompter(self, pending: _Pending) -> Callable[[int, str], None]:
        def prompt(chat_id: int, _username: str) -> None:
            self.client.send_message(chat_id, MSG_SEND_ID)
            self._pending[chat_id] = pending

        return prompt

    def _send_help(self, chat_id: int, _username: str) -> None:
        self.client.send_message(chat_id, MSG_HELP)

    def _send_donate(self, chat_id: int, _username: str) -> None:
        self.client.send_message(chat_id, MSG_DONATE)

    def _send_start(self, chat_id: int, username: str) -> None:
        self._pending.pop(chat_id, None)
        user = User(user_name=username, user_settings=UserSettings(chat_id=chat_id))
        self.storage.create_settings(user)
        self.client.send_message(chat_id, MSG_HELLO)

    def _send_settings(self, chat_id: int, username: str) -> None:
        user = self.storage.settings(username)
        try:
            self.client.send_message(chat_id, format_settings(user.user_settings))
        except BotError as err:
            logger.warning("can't send settings to %s: %s", chat_id, err)
        self._pending[chat_id] = _Pending.SETTINGS

    def _update_settings(self, chat_id: int, username: str, text: str) -> None:
        with _wrapping("can't to command: UpdSettings"):
            text = text.replace(" ", "")
            if text == _EXIT_WORD:
                return
            parts = text.split(",")
            if len(parts) > 2 or not _INTEGER.fullmatch(parts[0]):
                self.client.send_message(chat_id, MSG_WRONG_ARGS)
                return
            self.storage.update_settings(username, parts)
            self.client.send_message(chat_id, MSG_SUCCESS_EDIT)

    def _send_check(self, chat_id: int, game_id: str) -> None:
        with _wrapping("can't to command: send random"):
            data = self.client.game(game_id)
            msg = (
                f"*Название:* {data.name} \n\n"
                f"*Описание:* {data.description} \n\n"
                f"*Цена без скидки:* {data.price.initial} \n\n"
                f"*Цена со скидкой:* {data.price.final} \n\n"
                f"*Поддерживаемые языки:* {clean_languages(data.languages)}"
            )
            self.client.send_message(chat_id, msg)

    def _send_my_games(self, chat_id: int, username: str) -> None:
        with _wrapping("can't to command: send game"):
            try:
                games = self.storage.check_all_games(username)
            except BotError:
                games = []
            if not games:
                self.client.send_message(chat_id, MSG_NO_SAVED_PAGES)
                return
            msg = "".join(
                f"*ID игры:* `{game.id}` \n"
                f"*Название игры:* {game.name} \n"
                f"*Актуальная цена:* {self.client.game(game.id).price.final} \n\n"
                for game in games
            )
            self.client.send_message(chat_id, msg)