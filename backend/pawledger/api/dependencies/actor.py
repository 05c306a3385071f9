# backend/pawledger/api/dependencies/actor.py
"""
Identity dependencies.

Authentication happens upstream; the gateway forwards the authenticated
identity as ``X-Customer-Id`` or ``X-Staff-Id``. Routes turn it into an
explicit ``Actor`` that is passed to every service call.
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from ...core.actor import Actor
from ...core.exceptions import UnauthorizedException
from ...repositories.factory import RepositoryFactory
from .database import get_db

logger = logging.getLogger(__name__)


def _unauthorized(message: str) -> HTTPException:
    return UnauthorizedException(message, code="UNAUTHENTICATED").to_http_exception()


def _parse_identity(raw: Optional[str], header: str) -> str:
    if not raw:
        raise _unauthorized(f"Missing {header} header")
    try:
        return str(UUID(raw.strip()))
    except ValueError:
        raise _unauthorized(f"Invalid {header} header") from None


def get_current_customer(
    x_customer_id: Optional[str] = Header(default=None, alias="X-Customer-Id"),
) -> Actor:
    """Customer identity for customer-facing routes."""
    return Actor.customer(_parse_identity(x_customer_id, "X-Customer-Id"))


def get_current_staff(
    x_staff_id: Optional[str] = Header(default=None, alias="X-Staff-Id"),
    db: Session = Depends(get_db),
) -> Actor:
    """Staff identity for admin routes. The staff user must exist."""
    staff_id = _parse_identity(x_staff_id, "X-Staff-Id")
    if RepositoryFactory.create_staff_repository(db).get_by_id(staff_id) is None:
        logger.warning("Rejected unknown staff id %s", staff_id)
        raise _unauthorized("Unknown staff user")
    return Actor.staff(staff_id)
