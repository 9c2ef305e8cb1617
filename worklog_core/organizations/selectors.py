# worklog_core/organizations/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller
from worklog_core.organizations.models import Organization


def organizations_for(caller: Caller) -> QuerySet[Organization]:
    """A caller only ever sees their own organization."""
    return Organization.objects.filter(id=caller.organization_id)


def get_organization(caller: Caller, organization_id: UUID) -> Organization:
    obj = organizations_for(caller).filter(id=organization_id).first()
    if obj is None:
        raise not_found(Kind.ORGANIZATION)
    return obj
