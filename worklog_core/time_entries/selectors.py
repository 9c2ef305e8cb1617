# worklog_core/time_entries/selectors.py
from __future__ import annotations

from datetime import date
from typing import Optional
from uuid import UUID

from django.db.models import QuerySet

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller
from worklog_core.time_entries.models import TimeEntry


def time_entries_visible_to(
    caller: Caller,
    *,
    user_id: Optional[UUID] = None,
    project_id: Optional[UUID] = None,
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> QuerySet[TimeEntry]:
    """
    Non-managers only ever see their own entries; user_id is a manager filter.
    """
    qs = TimeEntry.objects.select_related("project", "user__user", "approved_by__user").filter(
        organization_id=caller.organization_id
    )
    if not caller.is_manager:
        qs = qs.filter(user_id=caller.profile_id)
    elif user_id:
        qs = qs.filter(user_id=user_id)

    if project_id:
        qs = qs.filter(project_id=project_id)
    if status:
        qs = qs.filter(status=status)
    if start_date:
        qs = qs.filter(entry_date__gte=start_date)
    if end_date:
        qs = qs.filter(entry_date__lte=end_date)
    return qs.order_by("-entry_date", "-created_at")


def get_time_entry(caller: Caller, entry_id: UUID) -> TimeEntry:
    obj = time_entries_visible_to(caller).filter(id=entry_id).first()
    if obj is None:
        raise not_found(Kind.TIME_ENTRY)
    return obj
