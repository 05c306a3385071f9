"""Shared schema types for consistent API contracts."""

from typing import Annotated
from uuid import UUID

from pydantic import AfterValidator


def _ensure_uuid(value: str) -> str:
    try:
        return str(UUID(value))
    except (ValueError, AttributeError, TypeError) as exc:
        raise ValueError("must be a valid UUID") from exc


# Identifiers travel as canonical lowercase UUID strings
UUIDStr = Annotated[str, AfterValidator(_ensure_uuid)]
