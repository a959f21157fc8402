import uuid
from types import SimpleNamespace

import pytest

from moafinder.auth.models import Role
from moafinder.core.access import (
    Policy,
    Subject,
    all_of,
    any_of,
    authenticated,
    ensure_allowed,
    filter_writable,
    has_role,
    in_organization,
    is_admin,
    is_staff,
    negate,
    owns,
    shares_organization,
)
from moafinder.core.exceptions import ForbiddenError
from moafinder.events.service import EVENT_POLICY

ORG = uuid.uuid4()
OTHER_ORG = uuid.uuid4()


def subject(role=Role.ORGANIZER, organizations=(), disabled=False) -> Subject:
    return Subject(
        id=uuid.uuid4(),
        role=role,
        organization_ids=frozenset(organizations),
        disabled=disabled,
    )


def test_anonymous_and_disabled_are_not_authenticated():
    assert not authenticated(None)
    assert not authenticated(subject(disabled=True))
    assert authenticated(subject())


def test_disabled_admin_has_no_role():
    assert not is_admin(subject(Role.ADMIN, disabled=True))
    assert is_admin(subject(Role.ADMIN))


def test_staff_roles():
    assert is_staff(subject(Role.EDITOR))
    assert is_staff(subject(Role.ADMIN))
    assert not is_staff(subject(Role.ORGANIZER))
    assert has_role(Role.ORGANIZER)(subject())


def test_owns():
    user = subject()
    assert owns("owner_id")(user, SimpleNamespace(owner_id=user.id))
    assert not owns("owner_id")(user, SimpleNamespace(owner_id=uuid.uuid4()))
    assert not owns("owner_id")(user, None)


def test_organization_rules():
    user = subject(organizations=[ORG])
    assert in_organization("organizer_id")(user, SimpleNamespace(organizer_id=ORG))
    assert not in_organization("organizer_id")(user, SimpleNamespace(organizer_id=OTHER_ORG))
    rule = shares_organization("organization_ids")
    assert rule(user, SimpleNamespace(organization_ids=[OTHER_ORG, ORG]))
    assert not rule(user, SimpleNamespace(organization_ids=[OTHER_ORG]))


def test_combinators():
    editor = subject(Role.EDITOR)
    assert any_of(is_admin, is_staff)(editor)
    assert not all_of(is_admin, is_staff)(editor)
    assert negate(is_admin)(editor)


def test_event_field_rules():
    event = SimpleNamespace(organizer_id=ORG)
    organizer = subject(organizations=[ORG])
    editor = subject(Role.EDITOR)
    admin = subject(Role.ADMIN)

    assert EVENT_POLICY.allows("update", organizer, event)
    assert not EVENT_POLICY.can_write(organizer, event, "status")
    assert EVENT_POLICY.can_write(editor, event, "status")
    assert not EVENT_POLICY.can_write(editor, event, "organizer_id")
    assert EVENT_POLICY.can_write(admin, event, "organizer_id")
    assert EVENT_POLICY.can_write(organizer, event, "title")


def test_filter_writable_drops_forbidden_fields():
    event = SimpleNamespace(organizer_id=ORG)
    organizer = subject(organizations=[ORG])
    data = {"title": "Neu", "status": "approved", "organizer_id": OTHER_ORG}
    assert filter_writable(EVENT_POLICY, organizer, event, data) == {"title": "Neu"}


def test_ensure_allowed():
    policy = Policy(name="thing", create=is_admin)
    ensure_allowed(policy, "create", subject(Role.ADMIN))
    with pytest.raises(ForbiddenError):
        ensure_allowed(policy, "create", subject(Role.EDITOR))
    with pytest.raises(ForbiddenError):
        ensure_allowed(policy, "delete", subject(Role.ADMIN))
