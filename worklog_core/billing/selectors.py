# worklog_core/billing/selectors.py
from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db.models import Count, Q, QuerySet, Sum

from worklog_core.billing.models import BILLED_STATUSES, BatchStatus, BillingBatch
from worklog_core.common.policy import Kind, not_found
from worklog_core.common.scope import Caller

RECENT_BATCHES = 5


def batches_for(
    caller: Caller,
    *,
    status: Optional[str] = None,
    project_id: Optional[UUID] = None,
) -> QuerySet[BillingBatch]:
    qs = BillingBatch.objects.select_related("project").filter(organization_id=caller.organization_id)
    if status:
        qs = qs.filter(status=status)
    if project_id:
        qs = qs.filter(project_id=project_id)
    return qs.order_by("-created_at")


def get_batch(caller: Caller, batch_id: UUID) -> BillingBatch:
    obj = batches_for(caller).prefetch_related("items").filter(id=batch_id).first()
    if obj is None:
        raise not_found(Kind.BILLING_BATCH)
    return obj


def billing_stats(
    caller: Caller,
    *,
    project_id: Optional[UUID] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> dict:
    """Computed on every call; sent and paid batches count as billed."""
    qs = batches_for(caller, project_id=project_id)
    if start_date:
        qs = qs.filter(created_at__date__gte=start_date)
    if end_date:
        qs = qs.filter(created_at__date__lte=end_date)

    counts = qs.aggregate(
        total=Count("id"),
        draft=Count("id", filter=Q(status=BatchStatus.DRAFT)),
        sent=Count("id", filter=Q(status=BatchStatus.SENT)),
        paid=Count("id", filter=Q(status=BatchStatus.PAID)),
    )
    billed = qs.filter(status__in=BILLED_STATUSES).aggregate(
        amount=Sum("total_amount"),
        hours=Sum("total_hours"),
    )

    return {
        "batches": counts,
        "total_billed": billed["amount"] or Decimal("0.00"),
        "total_hours": billed["hours"] or Decimal("0.00"),
        "recent_batches": list(qs[:RECENT_BATCHES]),
    }
