# worklog_core/iam/selectors.py
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import Q, QuerySet

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller
from worklog_core.iam.models import UserProfile


def users_visible_to(
    caller: Caller,
    *,
    role: Optional[str] = None,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> QuerySet[UserProfile]:
    """
    Admin/manager: every user of the organization.
    Everyone else: only themselves.
    """
    qs = UserProfile.objects.select_related("user", "organization").filter(organization_id=caller.organization_id)
    if not caller.is_manager:
        qs = qs.filter(id=caller.profile_id)

    if role:
        qs = qs.filter(role=role)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if search:
        search = search.strip()
        qs = qs.filter(
            Q(user__email__icontains=search)
            | Q(user__first_name__icontains=search)
            | Q(user__last_name__icontains=search)
        )
    return qs.order_by("user__last_name", "user__first_name", "created_at")


def get_user(caller: Caller, profile_id: UUID) -> UserProfile:
    obj = users_visible_to(caller).filter(id=profile_id).first()
    if obj is None:
        raise not_found(Kind.USER)
    return obj


def get_org_user(organization_id: UUID, profile_id: UUID) -> UserProfile:
    """Tenant lookup without visibility rules (assigning members, timesheet owners)."""
    obj = (
        UserProfile.objects.select_related("user", "organization")
        .filter(organization_id=organization_id, id=profile_id)
        .first()
    )
    if obj is None:
        raise not_found(Kind.USER)
    return obj
