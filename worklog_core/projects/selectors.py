# worklog_core/projects/selectors.py
"""
Project visibility:
  admin/manager -> every project of the organization
  anyone else   -> projects with an active membership AND project.is_active
"""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from django.db.models import Q, QuerySet

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.roles import MANAGING_ROLES
from worklog_core.common.scope import Caller
from worklog_core.iam.models import UserProfile
from worklog_core.projects.models import Project, ProjectMembership


def _visible_projects(*, organization_id: UUID, profile_id: UUID, role: str) -> QuerySet[Project]:
    qs = Project.objects.select_related("customer", "sow").filter(organization_id=organization_id)
    if role in MANAGING_ROLES:
        return qs
    # the membership itself must be active, not just any row for the user
    member_of = ProjectMembership.objects.filter(
        organization_id=organization_id,
        user_id=profile_id,
        is_active=True,
    ).values("project_id")
    return qs.filter(is_active=True, id__in=member_of)


def projects_visible_to(
    caller: Caller,
    *,
    customer_id: Optional[UUID] = None,
    status: Optional[str] = None,
    billing_model: Optional[str] = None,
    search: Optional[str] = None,
) -> QuerySet[Project]:
    qs = _visible_projects(organization_id=caller.organization_id, profile_id=caller.profile_id, role=caller.role)
    if customer_id:
        qs = qs.filter(customer_id=customer_id)
    if status:
        qs = qs.filter(status=status)
    if billing_model:
        qs = qs.filter(billing_model=billing_model)
    if search:
        search = search.strip()
        qs = qs.filter(Q(name__icontains=search) | Q(description__icontains=search))
    return qs.order_by("name", "created_at")


def projects_visible_to_profile(profile: UserProfile) -> QuerySet[Project]:
    """Same rule, evaluated for a user other than the caller (e.g. a timesheet owner)."""
    return _visible_projects(organization_id=profile.organization_id, profile_id=profile.id, role=profile.role)


def get_project(caller: Caller, project_id: UUID) -> Project:
    obj = projects_visible_to(caller).filter(id=project_id).first()
    if obj is None:
        raise not_found(Kind.PROJECT)
    return obj


def active_memberships(project: Project) -> QuerySet[ProjectMembership]:
    return (
        ProjectMembership.objects.select_related("user__user", "project")
        .filter(organization_id=project.organization_id, project=project, is_active=True)
        .order_by("joined_at")
    )


def memberships_for_user(profile: UserProfile) -> QuerySet[ProjectMembership]:
    return (
        ProjectMembership.objects.select_related("user__user", "project")
        .filter(organization_id=profile.organization_id, user=profile, is_active=True)
        .order_by("joined_at")
    )


def get_membership(caller: Caller, membership_id: UUID) -> ProjectMembership:
    obj = (
        ProjectMembership.objects.select_related("user__user", "project")
        .filter(organization_id=caller.organization_id, id=membership_id)
        .first()
    )
    if obj is None:
        raise not_found(Kind.MEMBERSHIP)
    return obj


def find_active_membership(*, project_id: UUID, user_id: UUID) -> Optional[ProjectMembership]:
    return ProjectMembership.objects.filter(project_id=project_id, user_id=user_id, is_active=True).first()


def resolve_rate(project: Project, user_id: UUID):
    """Membership override first, then the project rate; None when neither is set."""
    membership = find_active_membership(project_id=project.id, user_id=user_id)
    if membership is not None and membership.hourly_rate is not None:
        return membership.hourly_rate
    return project.hourly_rate
