# worklog_core/customers/selectors.py
from __future__ import annotations

from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import Q, QuerySet, Sum

from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller
from worklog_core.customers.models import Customer


def customers_for(
    caller: Caller,
    *,
    is_active: Optional[bool] = None,
    search: Optional[str] = None,
) -> QuerySet[Customer]:
    qs = Customer.objects.filter(organization_id=caller.organization_id)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    if search:
        search = search.strip()
        qs = qs.filter(Q(name__icontains=search) | Q(email__icontains=search))
    return qs.order_by("name", "created_at")


def get_customer(caller: Caller, customer_id: UUID) -> Customer:
    obj = customers_for(caller).filter(id=customer_id).first()
    if obj is None:
        raise not_found(Kind.CUSTOMER)
    return obj


def customer_stats(customer: Customer) -> dict:
    # imported here: these apps depend on customers, not the other way round
    from worklog_core.billing.models import BILLED_STATUSES, BillingBatch
    from worklog_core.projects.models import Project, ProjectStatus
    from worklog_core.sows.models import SOW, SOWStatus
    from worklog_core.time_entries.models import TimeEntry
    from worklog_core.timesheets.selectors import logged_timesheet_hours

    projects = Project.objects.filter(organization_id=customer.organization_id, customer=customer)
    sows = SOW.objects.filter(organization_id=customer.organization_id, customer=customer)
    entries = TimeEntry.objects.filter(organization_id=customer.organization_id, project__customer=customer)

    hours = entries.aggregate(
        total=Sum("duration_hours"),
        billable=Sum("duration_hours", filter=Q(is_billable=True)),
    )
    # timesheet hours have no billable flag and all count as billable
    timesheet_hours = logged_timesheet_hours(customer.organization_id, project__customer=customer)
    billed = BillingBatch.objects.filter(
        organization_id=customer.organization_id,
        project__customer=customer,
        status__in=BILLED_STATUSES,
    ).aggregate(total=Sum("total_amount"))

    return {
        "customer_id": customer.id,
        "projects": {
            "total": projects.count(),
            "active": projects.filter(status=ProjectStatus.ACTIVE).count(),
        },
        "sows": {
            "total": sows.count(),
            "active": sows.filter(status=SOWStatus.ACTIVE).count(),
        },
        "total_hours": (hours["total"] or Decimal("0.00")) + timesheet_hours,
        "billable_hours": (hours["billable"] or Decimal("0.00")) + timesheet_hours,
        "total_billed": billed["total"] or Decimal("0.00"),
    }
