"""Database models."""

from codex_cms.db.models.base import Base
from codex_cms.db.models.content import (
    PARENT_COLUMNS,
    BlogPost,
    Block,
    CaseStudy,
    Page,
    Service,
)
from codex_cms.db.models.settings import SiteSetting
from codex_cms.db.models.users import ApiKey, User

__all__ = [
    "Base",
    "PARENT_COLUMNS",
    "Page",
    "BlogPost",
    "CaseStudy",
    "Service",
    "Block",
    "User",
    "ApiKey",
    "SiteSetting",
]
