"""Relational store: connection handle, models and the content store."""

from codex_cms.db.client import Database

__all__ = ["Database"]
