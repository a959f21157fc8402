"""Role and ownership based access rules.

A rule is a plain predicate ``rule(subject, resource, field) -> bool``.
``subject`` is ``None`` for anonymous requests, ``resource`` is the ORM object
being acted on (``None`` for creation and listing) and ``field`` names the
attribute being written, if any.  Rules hold no request state and are
combined with :func:`any_of`, :func:`all_of` and :func:`negate`.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from moafinder.auth.models import Role
from moafinder.core.exceptions import ForbiddenError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Subject:
    id: uuid.UUID
    role: Role
    organization_ids: frozenset[uuid.UUID] = frozenset()
    disabled: bool = False


Rule = Callable[[Subject | None, Any, str | None], bool]


def allow(subject: Subject | None, resource: Any = None, field: str | None = None) -> bool:
    return True


def deny(subject: Subject | None, resource: Any = None, field: str | None = None) -> bool:
    return False


def authenticated(subject: Subject | None, resource: Any = None, field: str | None = None) -> bool:
    return subject is not None and not subject.disabled


def has_role(*roles: Role) -> Rule:
    allowed = frozenset(roles)

    def rule(subject, resource=None, field=None):
        return authenticated(subject) and subject.role in allowed

    return rule


def owns(attr: str) -> Rule:
    """The resource's ``attr`` points at the subject."""

    def rule(subject, resource=None, field=None):
        if not authenticated(subject) or resource is None:
            return False
        return getattr(resource, attr, None) == subject.id

    return rule


def in_organization(attr: str) -> Rule:
    """The resource's ``attr`` is one of the subject's organizations."""

    def rule(subject, resource=None, field=None):
        if not authenticated(subject) or resource is None:
            return False
        return getattr(resource, attr, None) in subject.organization_ids

    return rule


def shares_organization(attr: str) -> Rule:
    """The resource's ``attr`` (a collection of organization ids) overlaps
    with the subject's organizations."""

    def rule(subject, resource=None, field=None):
        if not authenticated(subject) or resource is None:
            return False
        return bool(set(getattr(resource, attr, None) or ()) & subject.organization_ids)

    return rule


def has_organization(subject: Subject | None, resource: Any = None, field: str | None = None) -> bool:
    return authenticated(subject) and bool(subject.organization_ids)


def any_of(*rules: Rule) -> Rule:
    def rule(subject, resource=None, field=None):
        return any(r(subject, resource, field) for r in rules)

    return rule


def all_of(*rules: Rule) -> Rule:
    def rule(subject, resource=None, field=None):
        return all(r(subject, resource, field) for r in rules)

    return rule


def negate(inner: Rule) -> Rule:
    def rule(subject, resource=None, field=None):
        return not inner(subject, resource, field)

    return rule


is_admin = has_role(Role.ADMIN)
is_staff = has_role(Role.ADMIN, Role.EDITOR)


@dataclass(frozen=True)
class Policy:
    """Access rules for one resource type.

    ``fields`` maps attribute names to the rule deciding who may write them;
    attributes without an entry are writable by anyone passing the action
    rule.
    """

    name: str
    read: Rule = allow
    create: Rule = deny
    update: Rule = deny
    delete: Rule = deny
    fields: Mapping[str, Rule] = field(default_factory=dict)

    def allows(self, action: str, subject: Subject | None, resource: Any = None) -> bool:
        rule: Rule = getattr(self, action)
        return rule(subject, resource, None)

    def can_write(self, subject: Subject | None, resource: Any, field_name: str) -> bool:
        rule = self.fields.get(field_name)
        return rule is None or rule(subject, resource, field_name)


def ensure_allowed(
    policy: Policy, action: str, subject: Subject | None, resource: Any = None
) -> None:
    if not policy.allows(action, subject, resource):
        raise ForbiddenError(f"Not allowed to {action} this {policy.name}.")


def filter_writable(
    policy: Policy, subject: Subject | None, resource: Any, data: dict[str, Any]
) -> dict[str, Any]:
    """Drop the entries of ``data`` the subject may not write."""
    allowed = {}
    for name, value in data.items():
        if policy.can_write(subject, resource, name):
            allowed[name] = value
        else:
            logger.info(
                "Ignoring write to %s.%s by %s",
                policy.name,
                name,
                subject.id if subject else "anonymous",
            )
    return allowed
