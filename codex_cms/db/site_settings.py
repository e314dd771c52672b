"""
SQLAlchemy-backed site settings store.
"""

from __future__ import annotations

from typing import Any, Mapping

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert

from codex_cms.db.client import Database
from codex_cms.db.errors import storage_errors
from codex_cms.db.models import SiteSetting
from codex_cms.kernel.time import utc_now


class SqlSiteSettingsStore:
    def __init__(self, db: Database):
        self._db = db

    async def get_all(self) -> dict[str, Any]:
        async with storage_errors("get_site_settings"):
            async with self._db.session() as session:
                result = await session.execute(select(SiteSetting).order_by(SiteSetting.key))
                return {row.key: row.value for row in result.scalars().all()}

    async def upsert(self, values: Mapping[str, Any]) -> dict[str, Any]:
        """Insert or overwrite every key in `values` in one transaction; returns the full set."""
        async with storage_errors("upsert_site_settings", keys=sorted(values)):
            async with self._db.session() as session:
                now = utc_now()
                for key, value in values.items():
                    statement = insert(SiteSetting).values(key=key, value=value, created_at=now, updated_at=now)
                    await session.execute(
                        statement.on_conflict_do_update(
                            index_elements=[SiteSetting.key],
                            set_={"value": statement.excluded.value, "updated_at": now},
                        )
                    )
                result = await session.execute(select(SiteSetting).order_by(SiteSetting.key))
                return {row.key: row.value for row in result.scalars().all()}
