# worklog_core/common/scope.py
from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from django.core.exceptions import ObjectDoesNotExist
from rest_framework.exceptions import AuthenticationFailed, NotAuthenticated, PermissionDenied

from worklog_core.common.logging_config import RequestContext
from worklog_core.common.roles import MANAGING_ROLES


@dataclass(frozen=True)
class Caller:
    """
    The authenticated principal as the domain sees it.
    organization_id is the tenant every query is scoped to.
    """
    user_id: int
    profile_id: UUID
    organization_id: UUID
    role: str
    email: str = ""

    @property
    def is_manager(self) -> bool:
        return self.role in MANAGING_ROLES


def ensure_profile_usable(profile) -> None:
    """
    Shared by the JWT authentication class and resolve_caller so both
    the bearer-token path and force-authenticated test clients apply the
    same account checks.
    """
    if not profile.is_active:
        raise PermissionDenied("User account is inactive.", code="USER_INACTIVE")
    if not profile.organization.is_active:
        raise PermissionDenied("Organization is inactive.", code="ORGANIZATION_INACTIVE")


def caller_from_profile(profile) -> Caller:
    return Caller(
        user_id=profile.user_id,
        profile_id=profile.id,
        organization_id=profile.organization_id,
        role=profile.role,
        email=profile.user.email or "",
    )


def resolve_caller(request) -> Caller:
    """
    Returns the Caller for this request, caching it on the request.

    Raises:
      - 401 AUTHENTICATION_REQUIRED when no user is authenticated
      - 401 USER_NOT_FOUND when the auth user has no worklog profile
      - 403 USER_INACTIVE / ORGANIZATION_INACTIVE
    """
    cached = getattr(request, "caller", None)
    if isinstance(cached, Caller):
        return cached

    user = getattr(request, "user", None)
    if not user or not getattr(user, "is_authenticated", False):
        raise NotAuthenticated("Authentication required.")

    try:
        profile = user.profile
    except ObjectDoesNotExist:
        raise AuthenticationFailed("User not found.", code="USER_NOT_FOUND")

    ensure_profile_usable(profile)

    caller = caller_from_profile(profile)
    request.caller = caller
    RequestContext.set(user_id=caller.profile_id, organization_id=caller.organization_id)
    return caller
