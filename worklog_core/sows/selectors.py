# worklog_core/sows/selectors.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import QuerySet, Sum

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller
from worklog_core.sows.models import SOW


def sows_for(
    caller: Caller,
    *,
    customer_id: Optional[UUID] = None,
    status: Optional[str] = None,
) -> QuerySet[SOW]:
    qs = SOW.objects.select_related("customer").filter(organization_id=caller.organization_id)
    if customer_id:
        qs = qs.filter(customer_id=customer_id)
    if status:
        qs = qs.filter(status=status)
    return qs.order_by("-created_at")


def get_sow(caller: Caller, sow_id: UUID) -> SOW:
    obj = sows_for(caller).filter(id=sow_id).first()
    if obj is None:
        raise not_found(Kind.SOW)
    return obj


def sow_stats(sow: SOW) -> dict:
    from worklog_core.billing.models import BILLED_STATUSES, BillingBatch
    from worklog_core.time_entries.models import TimeEntry
    from worklog_core.timesheets.selectors import logged_timesheet_hours

    hours = TimeEntry.objects.filter(organization_id=sow.organization_id, project__sow=sow).aggregate(
        total=Sum("duration_hours")
    )
    billed = BillingBatch.objects.filter(
        organization_id=sow.organization_id,
        project__sow=sow,
        status__in=BILLED_STATUSES,
    ).aggregate(total=Sum("total_amount"))

    total_billed = billed["total"] or Decimal("0.00")
    utilization = Decimal("0.00")
    if sow.total_budget:
        utilization = (total_billed / sow.total_budget * Decimal("100")).quantize(Decimal("0.01"))

    return {
        "sow_id": sow.id,
        "project_count": sow.projects.count(),
        "total_hours": (hours["total"] or Decimal("0.00")) + logged_timesheet_hours(sow.organization_id, project__sow=sow),
        "total_billed": total_billed,
        "budget_utilization": utilization,
    }
