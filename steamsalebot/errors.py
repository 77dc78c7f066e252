"""Error type shared across the bot."""

from __future__ import annotations


class BotError(Exception):
    """An error raised by the bot, usually wrapping an underlying cause."""


def wrap(msg: str, err: BaseException) -> BotError:
    """Return a BotError reading ``"<msg>: <err>"`` whose cause is *err*."""
    wrapped = BotError(f"{msg}: {err}")
    wrapped.__cause__ = err
    return wrapped