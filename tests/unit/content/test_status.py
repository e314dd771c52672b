from datetime import datetime, timedelta, timezone

import pytest

from codex_cms.content.status import (
    is_publicly_visible,
    requires_publish_permission,
    scheduling_violation,
)
from codex_cms.content.types import PublishStatus

pytestmark = pytest.mark.unit

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class TestVisibility:
    @pytest.mark.parametrize("status", list(PublishStatus))
    def test_only_published_is_public(self, status):
        assert is_publicly_visible(status) == (status is PublishStatus.PUBLISHED)

    def test_accepts_stored_strings(self):
        assert is_publicly_visible("published")
        assert not is_publicly_visible("inReview")
        assert not is_publicly_visible(None)


class TestPublishPermission:
    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (PublishStatus.DRAFT, False),
            (PublishStatus.IN_REVIEW, False),
            (PublishStatus.SCHEDULED, True),
            (PublishStatus.PUBLISHED, True),
        ],
    )
    def test_requires_publish_permission(self, status, expected):
        assert requires_publish_permission(status) is expected


class TestScheduling:
    def _check(self, **overrides):
        kwargs = dict(
            current=PublishStatus.DRAFT,
            target=PublishStatus.SCHEDULED,
            scheduled_at=NOW + timedelta(hours=1),
            previous_scheduled_at=None,
            now=NOW,
        )
        kwargs.update(overrides)
        return scheduling_violation(**kwargs)

    def test_future_schedule_is_valid(self):
        assert self._check() is None

    def test_missing_timestamp(self):
        assert "required" in self._check(scheduled_at=None)

    def test_past_timestamp(self):
        assert "future" in self._check(scheduled_at=NOW - timedelta(minutes=1))

    def test_timestamp_equal_to_now_is_not_future(self):
        assert self._check(scheduled_at=NOW) is not None

    def test_other_targets_ignore_timestamp(self):
        assert self._check(target=PublishStatus.PUBLISHED, scheduled_at=None) is None
        assert self._check(target=PublishStatus.DRAFT, scheduled_at=NOW - timedelta(days=1)) is None

    def test_unchanged_schedule_is_not_rechecked(self):
        past = NOW - timedelta(minutes=5)
        assert (
            self._check(current=PublishStatus.SCHEDULED, scheduled_at=past, previous_scheduled_at=past)
            is None
        )

    def test_moved_schedule_must_be_in_the_future(self):
        earlier = NOW - timedelta(minutes=5)
        assert (
            self._check(
                current=PublishStatus.SCHEDULED,
                scheduled_at=earlier,
                previous_scheduled_at=NOW + timedelta(days=1),
            )
            is not None
        )

    def test_naive_timestamps_are_treated_as_utc(self):
        assert self._check(scheduled_at=datetime(2026, 1, 1, 2, 0)) is None
