"""
Unit tests for site settings.
"""

import pytest

from codex_cms.content.site_settings import SiteSettingsService, stored_value, validate_settings
from codex_cms.kernel.errors import AuthenticationRequired, AuthorizationDenied, ValidationFailed

pytestmark = pytest.mark.unit


@pytest.fixture
def service(site_settings_store):
    return SiteSettingsService(site_settings_store)


class TestStoredValue:
    @pytest.mark.parametrize("value", [{"twitter": "@codex"}, ["en", "de"]])
    def test_structured_values_are_kept(self, value):
        assert stored_value(value) == value

    @pytest.mark.parametrize("value", ["Codex", 3, True, None])
    def test_scalars_are_wrapped(self, value):
        assert stored_value(value) == {"value": value}


class TestValidateSettings:
    def test_rejects_non_object(self):
        result = validate_settings(["siteName"])
        assert [e.field for e in result.errors] == ["body"]

    def test_rejects_bad_keys(self):
        result = validate_settings({"siteName": "Codex", "1st": "x", "has space": "y"})
        assert {e.field for e in result.errors} == {"1st", "has space"}
        assert {e.code for e in result.errors} == {"settings.invalid_key"}


class TestSiteSettingsService:
    async def test_author_cannot_read(self, service, author):
        with pytest.raises(AuthorizationDenied):
            await service.get(author)

    async def test_admin_reads(self, service, admin, site_settings_store):
        site_settings_store.values["siteName"] = {"value": "Codex"}
        response = await service.get(admin)
        assert response == {"data": {"siteName": {"value": "Codex"}}}

    async def test_read_key_reads(self, service, read_key):
        assert (await service.get(read_key))["data"] == {}

    async def test_unauthenticated(self, service, site_settings_store):
        with pytest.raises(AuthenticationRequired):
            await service.update(None, {"siteName": "Codex"})
        assert site_settings_store.upserts == []

    async def test_only_owner_edits(self, service, admin, owner, site_settings_store):
        with pytest.raises(AuthorizationDenied):
            await service.update(admin, {"siteName": "Codex"})
        assert site_settings_store.upserts == []

        response = await service.update(owner, {"siteName": "Codex", "social": {"github": "codex"}})
        assert response["data"] == {"siteName": {"value": "Codex"}, "social": {"github": "codex"}}

    async def test_write_key_cannot_edit(self, service, write_key, admin_key):
        with pytest.raises(AuthorizationDenied):
            await service.update(write_key, {"siteName": "Codex"})
        assert (await service.update(admin_key, {"siteName": "Codex"}))["data"]["siteName"] == {"value": "Codex"}

    async def test_keys_not_sent_are_kept(self, service, owner, site_settings_store):
        site_settings_store.values["footer"] = {"value": "(c) Codex"}
        response = await service.update(owner, {"siteName": "Codex"})
        assert set(response["data"]) == {"footer", "siteName"}

    async def test_validation_after_authorization(self, service, owner, site_settings_store):
        with pytest.raises(ValidationFailed):
            await service.update(owner, {"bad key": 1})
        assert site_settings_store.upserts == []
