# worklog_core/sows/services.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from worklog_core.common.api.exceptions import ConflictError
from worklog_core.sows.models import SOW, SOWStatus

logger = logging.getLogger(__name__)


def _check_dates(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError({"end_date": "End date must not precede start date."})


def _check_amount(value: Optional[Decimal], field: str) -> None:
    if value is not None and value < 0:
        raise ValidationError({field: "Must be >= 0."})


class SOWService:
    """
    Customer ownership is checked by the caller (tenant-scoped selector);
    the service assumes customer_id already belongs to organization_id.
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        organization_id: UUID,
        customer_id: UUID,
        title: str,
        description: str = "",
        scope: str = "",
        deliverables: Optional[list] = None,
        billing_terms: str = "",
        hourly_rate: Optional[Decimal] = None,
        total_budget: Optional[Decimal] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: str = SOWStatus.DRAFT,
    ) -> SOW:
        title = (title or "").strip()
        if not title:
            raise ValidationError({"title": "This field is required."})
        _check_dates(start_date, end_date)
        _check_amount(hourly_rate, "hourly_rate")
        _check_amount(total_budget, "total_budget")

        sow = SOW.objects.create(
            organization_id=organization_id,
            customer_id=customer_id,
            title=title,
            description=description or "",
            scope=scope or "",
            deliverables=deliverables or [],
            billing_terms=billing_terms or "",
            hourly_rate=hourly_rate,
            total_budget=total_budget,
            start_date=start_date,
            end_date=end_date,
            status=status,
        )
        logger.info("sow created", extra={"sow_id": str(sow.id), "customer_id": str(customer_id)})
        return sow

    @staticmethod
    @transaction.atomic
    def update(*, sow_id: UUID, **changes) -> SOW:
        sow = SOW.objects.select_for_update().get(id=sow_id)

        if "title" in changes:
            title = (changes["title"] or "").strip()
            if not title:
                raise ValidationError({"title": "This field may not be blank."})
            changes["title"] = title
        _check_amount(changes.get("hourly_rate"), "hourly_rate")
        _check_amount(changes.get("total_budget"), "total_budget")
        _check_dates(changes.get("start_date", sow.start_date), changes.get("end_date", sow.end_date))

        update_fields = ["updated_at"]
        for field, value in changes.items():
            setattr(sow, field, value)
            update_fields.append(field)

        sow.save(update_fields=update_fields)
        return sow

    @staticmethod
    @transaction.atomic
    def cancel(*, sow_id: UUID) -> SOW:
        from worklog_core.projects.models import OPEN_PROJECT_STATUSES, Project

        sow = SOW.objects.select_for_update().get(id=sow_id)
        if Project.objects.filter(sow=sow, status__in=OPEN_PROJECT_STATUSES).exists():
            raise ConflictError(
                "SOW has planning or active projects and cannot be deleted.",
                code="SOW_HAS_ACTIVE_PROJECTS",
            )

        sow.status = SOWStatus.CANCELLED
        sow.save(update_fields=["status", "updated_at"])
        logger.info("sow cancelled", extra={"sow_id": str(sow.id)})
        return sow
