"""Telegram bot that tracks Steam games and announces daily deals and seasonal sales."""

__version__ = "0.1.0"