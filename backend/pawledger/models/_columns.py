"""Shared column helpers for PawLedger models."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Type
import uuid

from sqlalchemy import Enum as SAEnum, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON

JSON_TYPE = JSONB(astext_type=Text()).with_variant(JSON(), "sqlite")


def new_id() -> str:
    return str(uuid.uuid4())


def now_utc() -> datetime:
    """Return timezone-aware UTC timestamp for defaults."""
    return datetime.now(timezone.utc)


def enum_column_type(enum_cls: Type[Enum], name: str) -> SAEnum:
    """String-backed enum column storing member values."""
    return SAEnum(
        enum_cls,
        name=name,
        native_enum=False,
        validate_strings=True,
        length=32,
        values_callable=lambda members: [member.value for member in members],
    )
