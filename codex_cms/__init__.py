"""Codex CMS content core."""

__version__ = "0.1.0"
