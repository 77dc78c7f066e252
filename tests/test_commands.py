import pytest

from steamsalebot.commands import (
    MSG_DELETE_GAME,
    MSG_DONATE,
    MSG_ERR_IMPORT,
    MSG_HELLO,
    MSG_HELP,
    MSG_NO_SAVED_PAGES,
    MSG_NOT_EXIST,
    MSG_SEND_ID,
    MSG_SUCCESS_EDIT,
    MSG_SUCCESS_IMPORT,
    MSG_WRONG_ARGS,
    CommandHandler,
    clean_languages,
    format_settings,
)
from steamsalebot.errors import BotError
from steamsalebot.file_storage import FileStorage
from steamsalebot.storage import UserSettings
from steamsalebot.telegram_client import GameData, GamePrice

CHAT = 7
USER = "alice"


class FakeClient:
    def __init__(self, games=None, fail_send=False):
        self.games = games or {}
        self.sent = []
        self.fail_send = fail_send

    def send_message(self, chat_id, text):
        if self.fail_send:
            raise BotError("can't send message")
        self.sent.append((chat_id, text))

    def game(self, game_id):
        try:
            return self.games[game_id]
        except KeyError:
            raise BotError("game not found or unsuccessful response") from None


DOTA = GameData(
    name="Dota 2",
    description="MOBA",
    languages="русский<strong>*</strong>, английский<br><strong>*</strong>озвучка",
    price=GamePrice(initial="бесплатно", final="бесплатно"),
)


@pytest.fixture
def storage(tmp_path):
    return FileStorage(tmp_path / "db")


@pytest.fixture
def client():
    return FakeClient({"570": DOTA})


@pytest.fixture
def handler(client, storage):
    return CommandHandler(client, storage)


def test_clean_languages_removes_footnotes():
    assert clean_languages(DOTA.languages) == "русский, английский"


def test_format_settings_shows_switches():
    text = format_settings(UserSettings(sales=True, free_weekend=False, discounts=True))
    assert "1. Распродажи: *Да* \n" in text
    assert "2. Ежедневные скидки: *Нет* \n" in text
    assert "3. Скидки ваших игр: *Да* \n" in text


def test_help_and_donate(handler, client):
    handler.handle(" /help ", CHAT, USER)
    handler.handle("/donate", CHAT, USER)
    assert client.sent == [(CHAT, MSG_HELP), (CHAT, MSG_DONATE)]


def test_start_creates_settings(handler, client, storage):
    handler.handle("/start", CHAT, USER)
    assert client.sent == [(CHAT, MSG_HELLO)]
    stored = storage.settings(USER).user_settings
    assert stored == UserSettings(chat_id=CHAT, discounts=True, free_weekend=True, sales=True)


def test_add_then_id_saves_game(handler, client, storage):
    handler.handle("/add", CHAT, USER)
    handler.handle("570", CHAT, USER)
    assert client.sent == [(CHAT, MSG_SEND_ID), (CHAT, MSG_SUCCESS_IMPORT + "Dota 2")]
    games = storage.check_all_games(USER)
    assert [(g.id, g.name, g.price) for g in games] == [("570", "Dota 2", "бесплатно")]


def test_add_unknown_id_reports_error(handler, client, storage):
    handler.handle("/add", CHAT, USER)
    handler.handle("999", CHAT, USER)
    assert client.sent[-1] == (CHAT, MSG_ERR_IMPORT)
    with pytest.raises(BotError):
        storage.check_all_games(USER)


def test_add_import_wraps_send_failure(storage):
    handler = CommandHandler(FakeClient(fail_send=True), storage)
    with pytest.raises(BotError, match="^can't to command: add game"):
        handler.add_import(CHAT, "999", USER)


def test_pending_prompt_is_consumed_once(handler, client, storage):
    handler.handle("/add", CHAT, USER)
    assert handler.in_queue_cmd(CHAT, "570", USER) is True
    assert handler.in_queue_cmd(CHAT, "570", USER) is False


def test_delete_removes_game(handler, client, storage):
    handler.add_import(CHAT, "570", USER)
    handler.handle("/delete", CHAT, USER)
    handler.handle("570", CHAT, USER)
    assert client.sent[-1] == (CHAT, MSG_DELETE_GAME + "Dota 2")
    with pytest.raises(BotError):
        storage.check_all_games(USER)


def test_delete_missing_game(handler, client):
    handler.delete_game(CHAT, "570", USER)
    assert client.sent == [(CHAT, MSG_NOT_EXIST)]


def test_settings_toggle(handler, client, storage):
    handler.handle("/start", CHAT, USER)
    handler.handle("/settings", CHAT, USER)
    expected = UserSettings(chat_id=CHAT, discounts=True, free_weekend=True, sales=True)
    assert client.sent[-1] == (CHAT, format_settings(expected))
    handler.handle("1, 3", CHAT, USER)
    assert client.sent[-1] == (CHAT, MSG_SUCCESS_EDIT)
    stored = storage.settings(USER).user_settings
    assert (stored.sales, stored.free_weekend, stored.discounts) == (False, True, False)


def test_settings_exit_changes_nothing(handler, client, storage):
    handler.handle("/start", CHAT, USER)
    handler.handle("/settings", CHAT, USER)
    count = len(client.sent)
    handler.handle("exit", CHAT, USER)
    assert len(client.sent) == count
    assert storage.settings(USER).user_settings.sales is True


@pytest.mark.parametrize("answer", ["1,2,3", "a", ""])
def test_settings_bad_answer(handler, client, storage, answer):
    handler.handle("/start", CHAT, USER)
    handler.handle("/settings", CHAT, USER)
    handler.in_queue_cmd(CHAT, answer, USER)
    assert client.sent[-1] == (CHAT, MSG_WRONG_ARGS)
    assert storage.settings(USER).user_settings.sales is True


def test_settings_unknown_user_raises(handler):
    with pytest.raises(BotError):
        handler.handle("/settings", CHAT, "nobody")


def test_check_sends_details(handler, client):
    handler.handle("/check", CHAT, USER)
    handler.handle("570", CHAT, USER)
    text = client.sent[-1][1]
    assert text.startswith("*Название:* Dota 2 \n\n*Описание:* MOBA \n\n")
    assert text.endswith("*Поддерживаемые языки:* русский, английский")


def test_check_unknown_game_raises(handler):
    handler.handle("/check", CHAT, USER)
    with pytest.raises(BotError, match="^can't to command: send random"):
        handler.handle("999", CHAT, USER)


def test_my_games_empty(handler, client):
    handler.handle("/my_games", CHAT, USER)
    assert client.sent == [(CHAT, MSG_NO_SAVED_PAGES)]


def test_my_games_lists_games(handler, client):
    handler.add_import(CHAT, "570", USER)
    handler.handle("/my_games", CHAT, USER)
    text = client.sent[-1][1]
    assert text == (
        "*ID игры:* `570` \n*Название игры:* Dota 2 \n*Актуальная цена:* бесплатно \n\n"
    )