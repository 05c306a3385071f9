"""Actor abstractions passed explicitly into every engine operation."""

from __future__ import annotations

from dataclasses import dataclass

from pawledger.core.enums import ActorKind
from pawledger.core.exceptions import ForbiddenException


@dataclass(frozen=True)
class Actor:
    """The authenticated entity making a request.

    ``id`` is the customer id for customers and the assistant (which always
    acts on behalf of one customer), and the staff user id for staff.
    """

    kind: ActorKind
    id: str

    @classmethod
    def customer(cls, customer_id: str) -> "Actor":
        return cls(kind=ActorKind.CUSTOMER, id=str(customer_id))

    @classmethod
    def staff(cls, staff_id: str) -> "Actor":
        return cls(kind=ActorKind.STAFF, id=str(staff_id))

    @classmethod
    def assistant(cls, customer_id: str) -> "Actor":
        return cls(kind=ActorKind.ASSISTANT, id=str(customer_id))

    @property
    def is_staff(self) -> bool:
        return self.kind == ActorKind.STAFF

    @property
    def staff_id(self) -> str | None:
        return self.id if self.is_staff else None

    def can_act_for(self, customer_id: str) -> bool:
        return self.is_staff or self.id == str(customer_id)

    def require_customer_access(self, customer_id: str) -> None:
        if not self.can_act_for(customer_id):
            raise ForbiddenException("Not allowed to act on behalf of this customer")

    def require_staff(self) -> None:
        if not self.is_staff:
            raise ForbiddenException("Staff access required")
