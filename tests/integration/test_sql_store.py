"""
Integration tests for the SQLAlchemy stores.

Require a real PostgreSQL. Point CODEX_CMS_TEST_DATABASE_URL at a disposable
database (postgresql+asyncpg://...); every test recreates the schema.
"""

import asyncio
import os

import pytest
import pytest_asyncio

from codex_cms.auth import ApiKeyPermission, Principal, Role
from codex_cms.config import Settings
from codex_cms.content.composition import BlockParent
from codex_cms.content.pipeline import ContentPipeline
from codex_cms.content.schemas import BlockDescriptor, Pagination
from codex_cms.content.types import BlockType, EntityKind, ParentType, PublishStatus
from codex_cms.db import Database
from codex_cms.db.accounts import SqlAccountStore
from codex_cms.db.models import Base, User
from codex_cms.db.site_settings import SqlSiteSettingsStore
from codex_cms.db.store import SqlContentStore
from codex_cms.kernel.errors import Conflict, NotFound
from codex_cms.kernel.time import utc_now

DATABASE_URL = os.environ.get("CODEX_CMS_TEST_DATABASE_URL")

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(not DATABASE_URL, reason="CODEX_CMS_TEST_DATABASE_URL not set"),
]


@pytest_asyncio.fixture
async def db():
    database = Database(Settings(database_url=DATABASE_URL, db_pool_mode="null"))
    await database.connect()
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    yield database
    async with database.engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await database.dispose()


@pytest.fixture
def store(db):
    return SqlContentStore(db)


@pytest.fixture
def accounts(db):
    return SqlAccountStore(db)


def _page_values(slug="about", locale="en", **overrides):
    values = {
        "title": "About",
        "slug": slug,
        "locale": locale,
        "status": "draft",
        "scheduled_at": None,
        "seo": None,
    }
    values.update(overrides)
    return values


def _blocks(*types):
    return [BlockDescriptor(type=block_type) for block_type in types]


class TestContentStore:
    async def test_create_with_blocks_and_read_back(self, store):
        created = await store.create_entity(
            EntityKind.PAGE, _page_values(), blocks=_blocks(BlockType.HERO, BlockType.FAQ), editor_id=None
        )

        fetched = await store.get_entity(EntityKind.PAGE, created["id"])
        assert [(b["type"], b["order"]) for b in fetched["blocks"]] == [("hero", 0), ("faq", 1)]

    async def test_unique_constraint_is_a_conflict(self, store):
        await store.create_entity(EntityKind.PAGE, _page_values(), blocks=None, editor_id=None)

        with pytest.raises(Conflict):
            await store.create_entity(EntityKind.PAGE, _page_values(), blocks=None, editor_id=None)

        other_locale = await store.create_entity(EntityKind.PAGE, _page_values(locale="de"), blocks=None, editor_id=None)
        assert other_locale["locale"] == "de"

    async def test_failed_create_leaves_nothing_behind(self, store):
        await store.create_entity(EntityKind.PAGE, _page_values(), blocks=None, editor_id=None)
        with pytest.raises(Conflict):
            await store.create_entity(EntityKind.PAGE, _page_values(), blocks=_blocks(BlockType.HERO), editor_id=None)

        _, total = await store.list_entities(EntityKind.PAGE, Pagination(limit=10))
        assert total == 1

    async def test_replace_is_atomic_per_parent(self, store):
        page = await store.create_entity(
            EntityKind.PAGE, _page_values(), blocks=_blocks(BlockType.HERO, BlockType.FAQ, BlockType.METRICS), editor_id=None
        )
        parent = BlockParent(ParentType.PAGE, page["id"])

        blocks = await store.replace_blocks(parent, _blocks(BlockType.RICH_TEXT))

        assert [(b["type"], b["order"]) for b in blocks] == [("richText", 0)]

    async def test_concurrent_replacements_never_interleave(self, store):
        page = await store.create_entity(EntityKind.PAGE, _page_values(), blocks=None, editor_id=None)
        parent = BlockParent(ParentType.PAGE, page["id"])
        first = _blocks(BlockType.HERO, BlockType.FAQ)
        second = _blocks(BlockType.METRICS, BlockType.MEDIA, BlockType.RICH_TEXT)

        await asyncio.gather(store.replace_blocks(parent, first), store.replace_blocks(parent, second))

        final = (await store.get_entity(EntityKind.PAGE, page["id"]))["blocks"]
        assert [b["type"] for b in final] in (["hero", "faq"], ["metrics", "media", "richText"])
        assert [b["order"] for b in final] == list(range(len(final)))

    async def test_replace_on_missing_parent(self, store):
        with pytest.raises(NotFound):
            await store.replace_blocks(BlockParent(ParentType.POST, "post_missing"), _blocks(BlockType.HERO))

    async def test_delete_cascades_to_blocks(self, store):
        page = await store.create_entity(EntityKind.PAGE, _page_values(), blocks=_blocks(BlockType.HERO), editor_id=None)
        block_id = page["blocks"][0]["id"]

        assert await store.delete_entity(EntityKind.PAGE, page["id"])
        assert await store.get_block(block_id) is None
        assert not await store.delete_entity(EntityKind.PAGE, page["id"])

    async def test_create_block_appends(self, store):
        page = await store.create_entity(EntityKind.PAGE, _page_values(), blocks=_blocks(BlockType.HERO), editor_id=None)
        block = await store.create_block(BlockParent(ParentType.PAGE, page["id"]), BlockDescriptor(type=BlockType.FAQ))
        assert block["order"] == 1

    async def test_block_orders_stay_unique_per_parent(self, store):
        page = await store.create_entity(
            EntityKind.PAGE, _page_values(), blocks=_blocks(BlockType.HERO, BlockType.FAQ), editor_id=None
        )
        parent = BlockParent(ParentType.PAGE, page["id"])

        with pytest.raises(Conflict):
            await store.create_block(parent, BlockDescriptor(type=BlockType.MEDIA, order=0))
        with pytest.raises(Conflict):
            await store.update_block(page["blocks"][1]["id"], BlockDescriptor(type=BlockType.FAQ, order=0))

        fetched = await store.get_entity(EntityKind.PAGE, page["id"])
        assert [(b["type"], b["order"]) for b in fetched["blocks"]] == [("hero", 0), ("faq", 1)]

    async def test_public_filter(self, store):
        await store.create_entity(EntityKind.PAGE, _page_values(slug="a"), blocks=None, editor_id=None)
        await store.create_entity(EntityKind.PAGE, _page_values(slug="b", status="published"), blocks=None, editor_id=None)

        records, total = await store.list_entities(
            EntityKind.PAGE, Pagination(limit=10), locale="en", status=PublishStatus.PUBLISHED
        )
        assert total == 1
        assert records[0]["slug"] == "b"


class TestPipelineOnPostgres:
    async def test_slug_conflict_then_other_locale(self, store, db):
        async with db.session() as session:
            session.add(User(id="usr_editor", email="editor@example.com", role=Role.EDITOR.value))

        editor = Principal.session(user_id="usr_editor", role=Role.EDITOR)
        pipeline = ContentPipeline(store)
        body = {"title": "About", "slug": "about", "locale": "en"}

        created = await pipeline.create(editor, EntityKind.PAGE, body)
        assert created["data"]["updatedBy"] == "usr_editor"
        with pytest.raises(Conflict):
            await pipeline.create(editor, EntityKind.PAGE, body)
        await pipeline.create(editor, EntityKind.PAGE, {**body, "locale": "de"})


class TestAccountStore:
    async def test_api_key_round_trip(self, accounts, db):
        async with db.session() as session:
            session.add(User(id="usr_1", email="one@example.com", role=Role.ADMIN.value))

        full_key, record = await accounts.create_api_key(
            "usr_1", name="Build", permission_level=ApiKeyPermission.WRITE, expires_at=None
        )
        resolved = await accounts.authenticate_api_key(full_key, now=utc_now())

        assert resolved["id"] == record["id"]
        assert resolved["lastUsedAt"] is not None
        assert await accounts.revoke_api_key("usr_1", record["id"])
        assert await accounts.authenticate_api_key(full_key, now=utc_now()) is None

    async def test_role_changes(self, accounts, db):
        async with db.session() as session:
            session.add(User(id="usr_1", email="one@example.com", role=Role.OWNER.value))

        assert await accounts.count_owners() == 1
        updated = await accounts.set_user_role("usr_1", Role.ADMIN)
        assert updated["role"] == "ADMIN"
        assert await accounts.count_owners() == 0


class TestSiteSettingsStore:
    async def test_upsert_overwrites_and_keeps_other_keys(self, db):
        settings = SqlSiteSettingsStore(db)

        await settings.upsert({"siteName": {"value": "Codex"}, "footer": {"value": "(c)"}})
        result = await settings.upsert({"siteName": {"value": "Codex Studio"}})

        assert result == {"footer": {"value": "(c)"}, "siteName": {"value": "Codex Studio"}}
        assert await settings.get_all() == result
