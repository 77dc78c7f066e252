"""Storage kept as JSON files in a directory per user."""

from __future__ import annotations

import errno
import json
import os
from contextlib import suppress
from pathlib import Path
from typing import Any

from steamsalebot.errors import BotError, wrap
from steamsalebot.storage import Game, NotSavedGameError, Storage, User, UserSettings

_PERM = 0o774
_GAMES_DIR = "games"
_SETTINGS_FILE = "settings"


def _game_to_dict(game: Game) -> dict[str, Any]:
    return {"name": game.name, "id": game.id, "price": game.price}


def _game_from_dict(data: dict[str, Any]) -> Game:
    return Game(name=data.get("name", ""), id=data.get("id", ""), price=data.get("price", ""))


def _user_to_dict(user: User) -> dict[str, Any]:
    s = user.user_settings
    return {
        "user_name": user.user_name,
        "user_settings": {
            "chat_id": s.chat_id,
            "discounts": s.discounts,
            "free_weekend": s.free_weekend,
            "sales": s.sales,
        },
        "game": _game_to_dict(user.game),
    }


def _user_from_dict(data: dict[str, Any]) -> User:
    s = data.get("user_settings") or {}
    return User(
        user_name=data.get("user_name", ""),
        user_settings=UserSettings(
            chat_id=s.get("chat_id", 0),
            discounts=s.get("discounts", False),
            free_weekend=s.get("free_weekend", False),
            sales=s.get("sales", False),
        ),
        game=_game_from_dict(data.get("game") or {}),
    )


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as fh:
        json.dump(payload, fh, ensure_ascii=False)


def _read_json(path: Path, what: str) -> dict[str, Any]:
    try:
        with path.open(encoding="utf-8") as fh:
            text = fh.read()
    except OSError as err:
        raise wrap(f"can't open {what}", err) from err
    try:
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError(f"expected an object, got {type(payload).__name__}")
    except ValueError as err:
        raise wrap(f"can't decode {what}", err) from err
    return payload


def _sorted_names(directory: Path) -> list[str]:
    return sorted(entry.name for entry in directory.iterdir())


class FileStorage(Storage):
    """Keeps ``<base>/<user>/settings`` and ``<base>/<user>/games/<hash>`` files."""

    def __init__(self, base_path: str | os.PathLike[str]) -> None:
        self.base_path = Path(base_path)

    def _user_dir(self, user_name: str) -> Path:
        return self.base_path / user_name

    def _games_dir(self, user_name: str) -> Path:
        return self._user_dir(user_name) / _GAMES_DIR

    def _decode_game(self, path: Path) -> Game:
        try:
            return _game_from_dict(_read_json(path, "game"))
        except AttributeError as err:
            raise wrap("can't decode game", err) from err

    def _decode_settings(self, path: Path) -> User:
        try:
            return _user_from_dict(_read_json(path, "settings"))
        except AttributeError as err:
            raise wrap("can't decode settings", err) from err

    def save(self, user: User) -> None:
        """Write *user.game* to the user's games directory, replacing any earlier copy."""
        games_dir = self._games_dir(user.user_name)
        try:
            games_dir.mkdir(mode=_PERM, parents=True, exist_ok=True)
            _write_json(games_dir / user.hash(), _game_to_dict(user.game))
        except OSError as err:
            raise wrap("can't save game", err) from err

    def check_all_games(self, user_name: str) -> list[Game]:
        """Return the user's games ordered by file name.

        Raises NotSavedGameError when the games directory is empty.
        """
        games_dir = self._games_dir(user_name)
        try:
            names = _sorted_names(games_dir)
        except OSError as err:
            raise wrap("can't check games", err) from err
        if not names:
            raise NotSavedGameError("can't check games: no save Game")
        try:
            return [self._decode_game(games_dir / name) for name in names]
        except BotError as err:
            raise wrap("can't check games", err) from err

    def remove(self, user: User) -> None:
        """Delete the stored game; raise FileNotFoundError if it is not stored."""
        path = self._games_dir(user.user_name) / user.hash()
        try:
            path.stat()
        except FileNotFoundError:
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path)) from None
        except OSError as err:
            raise wrap(f"can't check if file {path} exists", err) from err
        try:
            path.unlink()
        except OSError as err:
            raise wrap(f"can't remove file {path}", err) from err

    def create_settings(self, user: User) -> None:
        """Store *user* with every notification switched on, unless settings exist."""
        user_dir = self._user_dir(user.user_name)
        try:
            user_dir.mkdir(mode=_PERM, parents=True, exist_ok=True)
            path = user_dir / _SETTINGS_FILE
            if path.exists():
                return
            user.user_settings.sales = True
            user.user_settings.free_weekend = True
            user.user_settings.discounts = True
            _write_json(path, _user_to_dict(user))
        except OSError as err:
            raise wrap("can't save game", err) from err

    def users(self) -> list[tuple[User, list[Game]]]:
        """Return each user directory's settings with its games, ordered by name."""
        try:
            entries = sorted(self.base_path.iterdir(), key=lambda p: p.name)
        except OSError:
            return []

        result: list[tuple[User, list[Game]]] = []
        for entry in entries:
            games_dir = entry / _GAMES_DIR
            with suppress(OSError):
                games_dir.mkdir(mode=_PERM, parents=True, exist_ok=True)
            try:
                names = _sorted_names(games_dir)
            except OSError as err:
                raise wrap("can't get users", err) from err
            try:
                user = self._decode_settings(entry / _SETTINGS_FILE)
                games = [self._decode_game(games_dir / name) for name in names]
            except BotError as err:
                raise wrap("can't get users", err) from err
            result.append((user, games))
        return result

    def update_settings(self, user_name: str, settings: list[str]) -> None:
        """Toggle switches: "1" sales, "2" free weekends, "3" discounts."""
        path = self._user_dir(user_name) / _SETTINGS_FILE
        try:
            user = self._decode_settings(path)
        except BotError as err:
            raise wrap("can't upd settings", err) from err

        switches = user.user_settings
        for choice in settings:
            choice = choice.strip()
            if choice == "1":
                switches.sales = not switches.sales
            elif choice == "2":
                switches.free_weekend = not switches.free_weekend
            elif choice == "3":
                switches.discounts = not switches.discounts

        try:
            _write_json(path, _user_to_dict(user))
        except OSError as err:
            raise wrap("can't upd settings", err) from err

    def settings(self, user_name: str) -> User:
        """Return the stored settings of *user_name*."""
        return self._decode_settings(self._user_dir(user_name) / _SETTINGS_FILE)