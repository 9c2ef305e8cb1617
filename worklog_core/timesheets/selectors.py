# worklog_core/timesheets/selectors.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import QuerySet, Sum

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller
from worklog_core.common.workflow import ApprovalStatus
from worklog_core.timesheets.models import Timesheet, TimesheetEntry


def timesheets_visible_to(
    caller: Caller,
    *,
    user_id: Optional[UUID] = None,
    status: Optional[str] = None,
    week_start: Optional[date] = None,
    week_end: Optional[date] = None,
) -> QuerySet[Timesheet]:
    qs = Timesheet.objects.select_related("user__user", "approved_by__user").filter(
        organization_id=caller.organization_id
    )
    if not caller.is_manager:
        qs = qs.filter(user_id=caller.profile_id)
    elif user_id:
        qs = qs.filter(user_id=user_id)

    if status:
        qs = qs.filter(status=status)
    if week_start:
        qs = qs.filter(week_start_date__gte=week_start)
    if week_end:
        qs = qs.filter(week_end_date__lte=week_end)
    return qs.order_by("-week_start_date", "-created_at")


def get_timesheet(caller: Caller, timesheet_id: UUID) -> Timesheet:
    obj = timesheets_visible_to(caller).prefetch_related("entries__project").filter(id=timesheet_id).first()
    if obj is None:
        raise not_found(Kind.TIMESHEET)
    return obj


def get_timesheet_entry(timesheet: Timesheet, entry_id: UUID) -> TimesheetEntry:
    obj = (
        TimesheetEntry.objects.select_related("project")
        .filter(organization_id=timesheet.organization_id, timesheet=timesheet, id=entry_id)
        .first()
    )
    if obj is None:
        raise not_found(Kind.TIMESHEET_ENTRY)
    return obj


def logged_timesheet_hours(organization_id: UUID, **project_filter) -> Decimal:
    """
    Hours on submitted and approved timesheets, for stats.
    project_filter narrows by project, e.g. project__customer=customer.
    """
    total = TimesheetEntry.objects.filter(
        organization_id=organization_id,
        timesheet__status__in=(ApprovalStatus.SUBMITTED, ApprovalStatus.APPROVED),
        **project_filter,
    ).aggregate(total=Sum("total_hours"))["total"]
    return total or Decimal("0.00")
