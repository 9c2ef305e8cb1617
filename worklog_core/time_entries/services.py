# worklog_core/time_entries/services.py
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
from worklog_core.common.workflow import EDITABLE_STATUSES, REVIEWABLE_STATUSES, SUBMITTABLE_STATUSES, ApprovalStatus
from worklog_core.projects.models import BillingModel, Project
from worklog_core.projects.selectors import resolve_rate
from worklog_core.time_entries.models import TimeEntry

logger = logging.getLogger(__name__)

MAX_HOURS_PER_ENTRY = Decimal("24")


def _check_duration(duration_hours: Decimal) -> None:
    if duration_hours is None or duration_hours <= 0:
        raise ValidationError({"duration_hours": "Must be greater than 0."})
    if duration_hours > MAX_HOURS_PER_ENTRY:
        raise ValidationError({"duration_hours": "Must not exceed 24 hours."})


def ensure_task_based(project: Project) -> None:
    if project.billing_model != BillingModel.TASK_BASED:
        raise ConflictError(
            "Time entries can only be logged against task-based projects.",
            code="BILLING_MODEL_MISMATCH",
        )


class TimeEntryService:
    """
    Lifecycle:
      draft/rejected --submit--> submitted --approve--> approved
                                           --reject---> rejected
    Edit and delete are only possible in draft/rejected.
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        organization_id: UUID,
        user_id: UUID,
        project: Project,
        entry_date: date,
        duration_hours: Decimal,
        task_description: str,
        is_billable: bool = True,
        hourly_rate: Optional[Decimal] = None,
        notes: str = "",
    ) -> TimeEntry:
        ensure_task_based(project)
        _check_duration(duration_hours)
        if not (task_description or "").strip():
            raise ValidationError({"task_description": "This field is required."})
        if hourly_rate is not None and hourly_rate < 0:
            raise ValidationError({"hourly_rate": "Must be >= 0."})

        if hourly_rate is None:
            hourly_rate = resolve_rate(project, user_id)

        entry = TimeEntry.objects.create(
            organization_id=organization_id,
            project=project,
            user_id=user_id,
            entry_date=entry_date,
            duration_hours=duration_hours,
            task_description=task_description.strip(),
            is_billable=is_billable,
            hourly_rate=hourly_rate,
            notes=notes or "",
            status=ApprovalStatus.DRAFT,
        )
        logger.info("time entry created", extra={"time_entry_id": str(entry.id), "project_id": str(project.id)})
        return entry

    @staticmethod
    @transaction.atomic
    def update(*, entry_id: UUID, **changes) -> TimeEntry:
        entry = TimeEntry.objects.select_for_update().get(id=entry_id)
        if entry.status not in EDITABLE_STATUSES:
            raise ConflictError(
                f"Time entry cannot be edited in status '{entry.status}'.",
                code="ENTRY_NOT_EDITABLE",
            )

        if "project" in changes:
            ensure_task_based(changes["project"])
        if "duration_hours" in changes:
            _check_duration(changes["duration_hours"])
        if "task_description" in changes:
            if not (changes["task_description"] or "").strip():
                raise ValidationError({"task_description": "This field may not be blank."})
            changes["task_description"] = changes["task_description"].strip()
        if changes.get("hourly_rate") is not None and changes["hourly_rate"] < 0:
            raise ValidationError({"hourly_rate": "Must be >= 0."})

        update_fields = ["updated_at"]
        for field, value in changes.items():
            setattr(entry, field, value)
            update_fields.append(field)

        entry.save(update_fields=update_fields)
        return entry

    @staticmethod
    @transaction.atomic
    def delete(*, entry_id: UUID) -> None:
        entry = TimeEntry.objects.select_for_update().get(id=entry_id)
        if entry.status not in EDITABLE_STATUSES:
            raise ConflictError(
                f"Time entry cannot be deleted in status '{entry.status}'.",
                code="ENTRY_NOT_DELETABLE",
            )
        entry.delete()
        logger.info("time entry deleted", extra={"time_entry_id": str(entry_id)})

    @staticmethod
    @transaction.atomic
    def submit(*, entry_id: UUID) -> TimeEntry:
        entry = TimeEntry.objects.select_for_update().get(id=entry_id)
        if entry.status not in SUBMITTABLE_STATUSES:
            raise ConflictError(
                f"Time entry cannot be submitted in status '{entry.status}'.",
                code="ENTRY_NOT_SUBMITTABLE",
            )

        entry.status = ApprovalStatus.SUBMITTED
        entry.submitted_at = timezone.now()
        entry.rejection_reason = ""
        entry.save(update_fields=["status", "submitted_at", "rejection_reason", "updated_at"])
        logger.info("time entry submitted", extra={"time_entry_id": str(entry.id)})
        return entry

    @staticmethod
    def _ensure_reviewable(entry: TimeEntry) -> None:
        if entry.status not in REVIEWABLE_STATUSES:
            raise ConflictError(
                f"Only submitted time entries can be reviewed (current status '{entry.status}').",
                code="INVALID_STATUS",
            )

    @staticmethod
    @transaction.atomic
    def approve(*, entry_id: UUID, approver_id: UUID) -> TimeEntry:
        entry = TimeEntry.objects.select_for_update().get(id=entry_id)
        TimeEntryService._ensure_reviewable(entry)

        entry.status = ApprovalStatus.APPROVED
        entry.approved_by_id = approver_id
        entry.approved_at = timezone.now()
        entry.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])
        logger.info("time entry approved", extra={"time_entry_id": str(entry.id), "approved_by": str(approver_id)})
        return entry

    @staticmethod
    @transaction.atomic
    def reject(*, entry_id: UUID, reason: str = "") -> TimeEntry:
        entry = TimeEntry.objects.select_for_update().get(id=entry_id)
        TimeEntryService._ensure_reviewable(entry)

        entry.status = ApprovalStatus.REJECTED
        entry.rejection_reason = reason or ""
        entry.save(update_fields=["status", "rejection_reason", "updated_at"])
        logger.info("time entry rejected", extra={"time_entry_id": str(entry.id)})
        return entry
