import pytest

from pawledger.core.actor import Actor
from pawledger.core.enums import ActorKind
from pawledger.core.exceptions import ForbiddenException

CUSTOMER_ID = "5b0e0f7e-4a7c-4a39-9f37-6a4f7f0d6a11"
OTHER_ID = "0c9d8f3a-2f5e-4c1e-8c4d-3b2a1f0e9d87"


def test_customer_acts_only_for_itself():
    actor = Actor.customer(CUSTOMER_ID)

    assert actor.kind == ActorKind.CUSTOMER
    assert actor.can_act_for(CUSTOMER_ID)
    assert not actor.can_act_for(OTHER_ID)
    assert actor.staff_id is None


def test_assistant_is_scoped_to_its_customer():
    actor = Actor.assistant(CUSTOMER_ID)

    assert not actor.is_staff
    assert actor.can_act_for(CUSTOMER_ID)
    with pytest.raises(ForbiddenException):
        actor.require_customer_access(OTHER_ID)


def test_staff_can_act_for_anyone():
    actor = Actor.staff(OTHER_ID)

    assert actor.is_staff
    assert actor.staff_id == OTHER_ID
    assert actor.can_act_for(CUSTOMER_ID)
    actor.require_staff()


def test_non_staff_fails_staff_check():
    with pytest.raises(ForbiddenException) as exc_info:
        Actor.customer(CUSTOMER_ID).require_staff()

    assert exc_info.value.status_code == 403
