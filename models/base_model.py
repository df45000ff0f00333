#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixins for the session authority.

- UUID primary key (String(36)) with defaults
- created_at / updated_at timestamps (timezone-aware, UTC)
- save() and delete() that go through DBStorage
- to_dict() that formats timestamps and strips SA internals and secrets

Timestamps are written in UTC. SQLite hands them back naive, so anything
comparing against "now" goes through as_utc() first.
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
import models

from sqlalchemy import Boolean, Column, String, DateTime
from sqlalchemy.orm import declarative_base

TIME_FMT = "%Y-%m-%dT%H:%M:%S.%f"

SENSITIVE_FIELDS = ("password_hash",)

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    """Timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class BaseModel:
    """
    Base mixin for all persistent models.

    - id, created_at, updated_at
    - save(), delete() wired to DBStorage
    - to_dict() with __class__ and timestamp formatting
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)

    def __init__(self, *args, **kwargs):
        """
        Allow attribute initialization via kwargs without requiring a session here.
        created_at/updated_at are filled on insert unless passed explicitly.
        """
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id}) {self.to_dict()}"

    def save(self):
        """Persist the instance and commit through DBStorage."""
        self.updated_at = utcnow()
        models.storage.new(self)
        models.storage.save()

    def delete(self):
        """
        Hard delete the current instance using DBStorage.
        Not committed here; the caller decides when to commit.
        """
        models.storage.delete(self)

    def to_dict(self) -> dict:
        """
        Return a dictionary of column values:
        - Adds __class__
        - Formats datetimes to TIME_FMT
        - Removes SQLAlchemy internal state and secrets
        """
        d = {k: v for k, v in self.__dict__.items() if k != "_sa_instance_state"}
        for key, value in d.items():
            if isinstance(value, datetime):
                d[key] = value.strftime(TIME_FMT)
        for key in SENSITIVE_FIELDS:
            d.pop(key, None)
        d["__class__"] = self.__class__.__name__
        return d


class SingleUseTokenMixin:
    """
    Columns shared by the email-keyed, single-use token families
    (password reset, email verification).

    There is no FK to users: the tokens reference an account only through
    its email, so integrity is checked by the services.
    Usable iff not used and not past expires_at.

    Example:
        class PasswordReset(SingleUseTokenMixin, BaseModel, Base):
            __tablename__ = "password_resets"
    """

    email = Column(String(255), nullable=False, index=True)
    token = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    used = Column(Boolean, nullable=False, default=False)

    def is_expired(self, now=None) -> bool:
        return (now or utcnow()) > as_utc(self.expires_at)

    def __repr__(self):
        return f"<{self.__class__.__name__} email={self.email} used={self.used}>"
