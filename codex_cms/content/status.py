"""
Publishing workflow.

States: draft, inReview, scheduled, published. Any state may move to any
other through an explicit update; only permission gates a transition. Nothing
here flips `scheduled` to `published` on a timer: that job runs outside this
service.
"""

from __future__ import annotations

from datetime import datetime

from codex_cms.content.types import PublishStatus
from codex_cms.kernel.time import coerce_utc

# Writing one of these states requires the publish capability.
PUBLISHING_STATES = frozenset({PublishStatus.SCHEDULED, PublishStatus.PUBLISHED})


def is_publicly_visible(status: PublishStatus | str | None) -> bool:
    """Public read paths filter on `published` only, whatever `scheduledAt` says."""
    return status == PublishStatus.PUBLISHED.value or status is PublishStatus.PUBLISHED


def requires_publish_permission(target: PublishStatus) -> bool:
    """True when the resulting status is `scheduled` or `published`.

    Decided from the requested status alone so the check can run before any
    store read. Editing an already published entity therefore needs the
    publish capability as well.
    """
    return target in PUBLISHING_STATES


def scheduling_violation(
    *,
    current: PublishStatus | None,
    target: PublishStatus,
    scheduled_at: datetime | None,
    previous_scheduled_at: datetime | None,
    now: datetime,
) -> str | None:
    """Return a message when `scheduled` is entered without a future `scheduledAt`.

    The future check applies at transition time: when entering `scheduled`,
    or when the timestamp of an already scheduled entity is changed.
    """
    if target is not PublishStatus.SCHEDULED:
        return None
    if scheduled_at is None:
        return "scheduledAt is required when status is scheduled"

    when = coerce_utc(scheduled_at)
    unchanged = (
        current is PublishStatus.SCHEDULED
        and previous_scheduled_at is not None
        and coerce_utc(previous_scheduled_at) == when
    )
    if unchanged:
        return None
    if when <= coerce_utc(now):
        return "scheduledAt must be in the future"
    return None
