# worklog_core/common/policy.py
"""
Central authorization policy.

Every handler asks one question, ``evaluate(caller, action, resource)``,
and gets one of three answers:

- ALLOW
- NOT_FOUND: the resource lives in another organization. Tenant isolation
  is checked first, so a foreign row is indistinguishable from a missing one.
- FORBIDDEN: the caller's role does not grant the action.

Row-level visibility (which projects an employee can see, which time
entries are "theirs") is expressed in the selectors; the policy only
decides on actions.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from rest_framework.exceptions import PermissionDenied

from worklog_core.common.api.exceptions import NotFoundError
from worklog_core.common.roles import ADMIN_ONLY, ALL_ROLES, MANAGING_ROLES, TRACKING_ROLES

if TYPE_CHECKING:
    from worklog_core.common.scope import Caller


class Action(str, Enum):
    LIST = "list"
    READ = "read"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    CHANGE_ROLE = "change_role"
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    MANAGE_MEMBERS = "manage_members"
    MANAGE_ITEMS = "manage_items"
    TRANSITION = "transition"
    RETRY_PROVISIONING = "retry_provisioning"


class Kind(str, Enum):
    ORGANIZATION = "organization"
    USER = "user"
    CUSTOMER = "customer"
    SOW = "sow"
    PROJECT = "project"
    MEMBERSHIP = "membership"
    TIME_ENTRY = "time_entry"
    TIMESHEET = "timesheet"
    TIMESHEET_ENTRY = "timesheet_entry"
    BILLING_BATCH = "billing_batch"
    BILLING_ITEM = "billing_item"


class Decision(str, Enum):
    ALLOW = "allow"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Resource:
    """
    What the caller wants to act on.

    organization_id / owner_id are None for collection-level checks
    (list, create); owner rules are then deferred to the object check.
    """
    kind: Kind
    organization_id: UUID | None = None
    owner_id: UUID | None = None


@dataclass(frozen=True)
class Rule:
    roles: frozenset[str] = frozenset()
    owner: bool = False  # the row's owner is allowed regardless of role


_READ = Rule(roles=ALL_ROLES)
_MANAGE = Rule(roles=MANAGING_ROLES)
_ADMIN = Rule(roles=ADMIN_ONLY)
_MANAGE_OR_OWNER = Rule(roles=MANAGING_ROLES, owner=True)
_OWNER = Rule(owner=True)

RULES: dict[tuple[Kind, Action], Rule] = {
    (Kind.ORGANIZATION, Action.LIST): _READ,
    (Kind.ORGANIZATION, Action.READ): _READ,
    (Kind.ORGANIZATION, Action.UPDATE): _MANAGE,

    (Kind.USER, Action.LIST): _READ,
    (Kind.USER, Action.READ): _READ,
    (Kind.USER, Action.CREATE): _MANAGE,
    (Kind.USER, Action.UPDATE): _MANAGE_OR_OWNER,
    (Kind.USER, Action.DELETE): _ADMIN,
    (Kind.USER, Action.CHANGE_ROLE): _MANAGE,
    (Kind.USER, Action.RETRY_PROVISIONING): _MANAGE,

    (Kind.CUSTOMER, Action.LIST): _READ,
    (Kind.CUSTOMER, Action.READ): _READ,
    (Kind.CUSTOMER, Action.CREATE): _MANAGE,
    (Kind.CUSTOMER, Action.UPDATE): _MANAGE,
    (Kind.CUSTOMER, Action.DELETE): _ADMIN,

    (Kind.SOW, Action.LIST): _READ,
    (Kind.SOW, Action.READ): _READ,
    (Kind.SOW, Action.CREATE): _MANAGE,
    (Kind.SOW, Action.UPDATE): _MANAGE,
    (Kind.SOW, Action.DELETE): _ADMIN,

    (Kind.PROJECT, Action.LIST): _READ,
    (Kind.PROJECT, Action.READ): _READ,
    (Kind.PROJECT, Action.CREATE): _MANAGE,
    (Kind.PROJECT, Action.UPDATE): _MANAGE,
    (Kind.PROJECT, Action.MANAGE_MEMBERS): _MANAGE,

    (Kind.MEMBERSHIP, Action.LIST): _READ,
    (Kind.MEMBERSHIP, Action.READ): _READ,
    (Kind.MEMBERSHIP, Action.CREATE): _MANAGE,
    (Kind.MEMBERSHIP, Action.UPDATE): _MANAGE,
    (Kind.MEMBERSHIP, Action.DELETE): _MANAGE,

    (Kind.TIME_ENTRY, Action.LIST): _READ,
    (Kind.TIME_ENTRY, Action.READ): _READ,
    (Kind.TIME_ENTRY, Action.CREATE): Rule(roles=TRACKING_ROLES),
    (Kind.TIME_ENTRY, Action.UPDATE): _MANAGE_OR_OWNER,
    (Kind.TIME_ENTRY, Action.DELETE): _MANAGE_OR_OWNER,
    (Kind.TIME_ENTRY, Action.SUBMIT): _OWNER,
    (Kind.TIME_ENTRY, Action.APPROVE): _MANAGE,
    (Kind.TIME_ENTRY, Action.REJECT): _MANAGE,

    (Kind.TIMESHEET, Action.LIST): _READ,
    (Kind.TIMESHEET, Action.READ): _READ,
    (Kind.TIMESHEET, Action.CREATE): Rule(roles=TRACKING_ROLES),
    (Kind.TIMESHEET, Action.UPDATE): _MANAGE_OR_OWNER,
    (Kind.TIMESHEET, Action.DELETE): _MANAGE_OR_OWNER,
    (Kind.TIMESHEET, Action.SUBMIT): _OWNER,
    (Kind.TIMESHEET, Action.APPROVE): _MANAGE,
    (Kind.TIMESHEET, Action.REJECT): _MANAGE,

    (Kind.BILLING_BATCH, Action.LIST): _READ,
    (Kind.BILLING_BATCH, Action.READ): _READ,
    (Kind.BILLING_BATCH, Action.CREATE): _MANAGE,
    (Kind.BILLING_BATCH, Action.UPDATE): _MANAGE,
    (Kind.BILLING_BATCH, Action.DELETE): _ADMIN,
    (Kind.BILLING_BATCH, Action.MANAGE_ITEMS): _MANAGE,
    (Kind.BILLING_BATCH, Action.TRANSITION): _MANAGE,
}

NOT_FOUND_CODES: dict[Kind, str] = {
    Kind.ORGANIZATION: "ORGANIZATION_NOT_FOUND",
    Kind.USER: "USER_NOT_FOUND",
    Kind.CUSTOMER: "CUSTOMER_NOT_FOUND",
    Kind.SOW: "SOW_NOT_FOUND",
    Kind.PROJECT: "PROJECT_NOT_FOUND",
    Kind.MEMBERSHIP: "MEMBERSHIP_NOT_FOUND",
    Kind.TIME_ENTRY: "TIME_ENTRY_NOT_FOUND",
    Kind.TIMESHEET: "TIMESHEET_NOT_FOUND",
    Kind.TIMESHEET_ENTRY: "TIMESHEET_ENTRY_NOT_FOUND",
    Kind.BILLING_BATCH: "BILLING_BATCH_NOT_FOUND",
    Kind.BILLING_ITEM: "BILLING_ITEM_NOT_FOUND",
}


def evaluate(caller: "Caller", action: Action, resource: Resource) -> Decision:
    if resource.organization_id is not None and resource.organization_id != caller.organization_id:
        return Decision.NOT_FOUND

    rule = RULES.get((resource.kind, action))
    if rule is None:
        # Unknown (kind, action) => deny by default
        return Decision.FORBIDDEN

    if caller.role in rule.roles:
        return Decision.ALLOW

    if rule.owner:
        if resource.owner_id is None:
            return Decision.ALLOW
        if resource.owner_id == caller.profile_id:
            return Decision.ALLOW

    return Decision.FORBIDDEN


def not_found(kind: Kind, message: str | None = None) -> NotFoundError:
    label = kind.value.replace("_", " ").capitalize()
    return NotFoundError(message or f"{label} not found.", code=NOT_FOUND_CODES[kind])


def forbidden(message: str | None = None) -> PermissionDenied:
    return PermissionDenied(
        message or "You do not have permission to perform this action.",
        code="INSUFFICIENT_PERMISSIONS",
    )


def authorize(caller: "Caller", action: Action, resource: Resource) -> None:
    """Raise the API error matching a non-ALLOW decision."""
    decision = evaluate(caller, action, resource)
    if decision is Decision.NOT_FOUND:
        raise not_found(resource.kind)
    if decision is Decision.FORBIDDEN:
        raise forbidden()


def is_manager(caller: "Caller") -> bool:
    return caller.role in MANAGING_ROLES
