"""Users and their API keys."""

from __future__ import annotations

from sqlalchemy import Column, DateTime, ForeignKey, String, Text, UniqueConstraint

from codex_cms.db.models.base import Base
from codex_cms.kernel.ids import id_factory
from codex_cms.kernel.time import utc_now


class User(Base):
    __tablename__ = "users"
    __table_args__ = (UniqueConstraint("email", name="uq_users_email"),)

    id = Column(String(100), primary_key=True, default=id_factory("user"))
    email = Column(String(255), nullable=False)
    name = Column(String(255), nullable=True)
    role = Column(String(20), nullable=False, default="AUTHOR", index=True)  # OWNER, ADMIN, EDITOR, AUTHOR

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)


class ApiKey(Base):
    __tablename__ = "api_keys"
    __table_args__ = (UniqueConstraint("key_hash", name="uq_api_keys_key_hash"),)

    id = Column(String(100), primary_key=True, default=id_factory("api_key"))
    user_id = Column(String(100), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(Text, nullable=False)

    # Only the SHA-256 of the key is stored; the prefix identifies it in listings.
    key_prefix = Column(String(16), nullable=False)
    key_hash = Column(String(64), nullable=False)
    permission_level = Column(String(10), nullable=False, default="read")  # read, write, admin

    expires_at = Column(DateTime(timezone=True), nullable=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
