# worklog_core/common/permissions.py

from __future__ import annotations

from rest_framework.permissions import BasePermission

from worklog_core.common.policy import Action, Decision, Resource, evaluate
from worklog_core.common.scope import resolve_caller


class PolicyPermission(BasePermission):
    """
    Collection-level gate backed by the central policy.

    Views declare:
      policy_kind     -> the Kind they serve
      policy_actions  -> extra {view action name: Action} entries for @action endpoints

    Detail routes are only checked for an authenticated caller here: the
    handler loads the row through a tenant-scoped selector first and then
    calls authorize(), so a foreign row is a 404 before any role check.
    Unknown collection actions are denied.
    """
    message = "You do not have permission to perform this action."
    code = "INSUFFICIENT_PERMISSIONS"

    DEFAULT_ACTIONS = {
        "list": Action.LIST,
        "retrieve": Action.READ,
        "create": Action.CREATE,
        "update": Action.UPDATE,
        "partial_update": Action.UPDATE,
        "destroy": Action.DELETE,
    }

    def _policy_action(self, view) -> Action | None:
        mapping = {**self.DEFAULT_ACTIONS, **(getattr(view, "policy_actions", None) or {})}
        return mapping.get(getattr(view, "action", None))

    def has_permission(self, request, view) -> bool:
        user = getattr(request, "user", None)
        if not user or not getattr(user, "is_authenticated", False):
            return False

        caller = resolve_caller(request)

        if getattr(view, "detail", False):
            return True

        action = self._policy_action(view)
        if action is None:
            return False

        decision = evaluate(caller, action, Resource(kind=view.policy_kind))
        return decision is Decision.ALLOW
