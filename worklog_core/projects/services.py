# worklog_core/projects/services.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from worklog_core.common.api.exceptions import ConflictError
from worklog_core.projects.models import BillingModel, Project, ProjectMembership, ProjectStatus

logger = logging.getLogger(__name__)


def _check_project_fields(
    *,
    start_date: Optional[date],
    end_date: Optional[date],
    hourly_rate: Optional[Decimal],
    budget_hours: Optional[Decimal],
) -> None:
    if start_date and end_date and end_date < start_date:
        raise ValidationError({"end_date": "End date must not precede start date."})
    if hourly_rate is not None and hourly_rate < 0:
        raise ValidationError({"hourly_rate": "Must be >= 0."})
    if budget_hours is not None and budget_hours < 0:
        raise ValidationError({"budget_hours": "Must be >= 0."})


def _check_sow_customer(sow, customer_id: UUID) -> None:
    if sow is not None and sow.customer_id != customer_id:
        raise ValidationError({"sow_id": "SOW belongs to a different customer."})


class ProjectService:
    """
    Customer/SOW tenancy is checked by the caller through tenant-scoped
    selectors; this layer checks the relations between them.
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        organization_id: UUID,
        customer,
        name: str,
        sow=None,
        description: str = "",
        billing_model: str = BillingModel.TIMESHEET,
        status: str = ProjectStatus.ACTIVE,
        is_active: bool = True,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        hourly_rate: Optional[Decimal] = None,
        budget_hours: Optional[Decimal] = None,
    ) -> Project:
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "This field is required."})
        _check_sow_customer(sow, customer.id)
        _check_project_fields(start_date=start_date, end_date=end_date, hourly_rate=hourly_rate, budget_hours=budget_hours)

        project = Project.objects.create(
            organization_id=organization_id,
            customer=customer,
            sow=sow,
            name=name,
            description=description or "",
            billing_model=billing_model,
            status=status,
            is_active=is_active,
            start_date=start_date,
            end_date=end_date,
            hourly_rate=hourly_rate,
            budget_hours=budget_hours,
        )
        logger.info("project created", extra={"project_id": str(project.id), "billing_model": billing_model})
        return project

    @staticmethod
    @transaction.atomic
    def update(*, project_id: UUID, **changes) -> Project:
        project = Project.objects.select_for_update().get(id=project_id)

        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError({"name": "This field may not be blank."})
            changes["name"] = name

        customer = changes.get("customer", project.customer)
        sow = changes.get("sow", project.sow)
        _check_sow_customer(sow, customer.id)
        _check_project_fields(
            start_date=changes.get("start_date", project.start_date),
            end_date=changes.get("end_date", project.end_date),
            hourly_rate=changes.get("hourly_rate"),
            budget_hours=changes.get("budget_hours"),
        )

        update_fields = ["updated_at"]
        for field, value in changes.items():
            setattr(project, field, value)
            update_fields.append(field)

        project.save(update_fields=update_fields)
        return project


class MembershipService:

    @staticmethod
    @transaction.atomic
    def add(
        *,
        project: Project,
        user_id: UUID,
        role: str = "member",
        hourly_rate: Optional[Decimal] = None,
    ) -> ProjectMembership:
        """
        One membership row per (project, user):
        - active row exists   -> 409 MEMBERSHIP_EXISTS
        - inactive row exists -> reactivated with the new role/rate
        """
        if hourly_rate is not None and hourly_rate < 0:
            raise ValidationError({"hourly_rate": "Must be >= 0."})

        existing = ProjectMembership.objects.select_for_update().filter(project=project, user_id=user_id).first()
        if existing is not None:
            if existing.is_active:
                raise ConflictError("User is already a member of this project.", code="MEMBERSHIP_EXISTS")
            existing.is_active = True
            existing.left_at = None
            existing.joined_at = timezone.now()
            existing.role = role or "member"
            existing.hourly_rate = hourly_rate
            existing.save(update_fields=["is_active", "left_at", "joined_at", "role", "hourly_rate", "updated_at"])
            logger.info("membership reactivated", extra={"membership_id": str(existing.id)})
            return existing

        membership = ProjectMembership.objects.create(
            organization_id=project.organization_id,
            project=project,
            user_id=user_id,
            role=role or "member",
            hourly_rate=hourly_rate,
        )
        logger.info("membership created", extra={"membership_id": str(membership.id), "project_id": str(project.id)})
        return membership

    @staticmethod
    @transaction.atomic
    def update(
        *,
        membership_id: UUID,
        role: Optional[str] = None,
        hourly_rate: Optional[Decimal] = None,
        is_active: Optional[bool] = None,
        clear_rate: bool = False,
    ) -> ProjectMembership:
        membership = ProjectMembership.objects.select_for_update().get(id=membership_id)

        update_fields = ["updated_at"]
        if role is not None:
            membership.role = role
            update_fields.append("role")
        if hourly_rate is not None or clear_rate:
            if hourly_rate is not None and hourly_rate < 0:
                raise ValidationError({"hourly_rate": "Must be >= 0."})
            membership.hourly_rate = hourly_rate
            update_fields.append("hourly_rate")
        if is_active is not None and is_active != membership.is_active:
            membership.is_active = is_active
            membership.left_at = None if is_active else timezone.now()
            if is_active:
                membership.joined_at = timezone.now()
            update_fields += ["is_active", "left_at", "joined_at"]

        membership.save(update_fields=update_fields)
        return membership

    @staticmethod
    @transaction.atomic
    def remove(*, membership_id: UUID) -> ProjectMembership:
        membership = ProjectMembership.objects.select_for_update().get(id=membership_id)
        if membership.is_active:
            membership.is_active = False
            membership.left_at = timezone.now()
            membership.save(update_fields=["is_active", "left_at", "updated_at"])
            logger.info("membership removed", extra={"membership_id": str(membership.id)})
        return membership
