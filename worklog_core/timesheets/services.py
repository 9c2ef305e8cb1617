# worklog_core/timesheets/services.py
from __future__ import annotations

import logging
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from worklog_core.common.api.exceptions import ConflictError
from worklog_core.common.policy import Kind, not_found
from worklog_core.common.workflow import EDITABLE_STATUSES, REVIEWABLE_STATUSES, SUBMITTABLE_STATUSES, ApprovalStatus
from worklog_core.iam.models import UserProfile
from worklog_core.projects.models import BillingModel, Project
from worklog_core.projects.selectors import projects_visible_to_profile, resolve_rate
from worklog_core.timesheets.models import WEEKDAY_FIELDS, Timesheet, TimesheetEntry

logger = logging.getLogger(__name__)

MAX_HOURS_PER_DAY = Decimal("24")


def _clean_hours(hours: dict) -> dict:
    cleaned = {}
    for field in WEEKDAY_FIELDS:
        if field not in hours:
            continue
        value = hours[field] if hours[field] is not None else Decimal("0.00")
        if value < 0 or value > MAX_HOURS_PER_DAY:
            raise ValidationError({field: "Must be between 0 and 24."})
        cleaned[field] = value
    return cleaned


class TimesheetService:
    """
    Weekly timesheets. Entries may only change while the timesheet is
    draft/rejected; every entry write recomputes Timesheet.total_hours
    with the timesheet row locked.
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        organization_id: UUID,
        user: UserProfile,
        week_start_date: date,
        week_end_date: Optional[date] = None,
        notes: str = "",
    ) -> Timesheet:
        week_end_date = week_end_date or (week_start_date + timedelta(days=6))
        if week_end_date < week_start_date:
            raise ValidationError({"week_end_date": "Week end must not precede week start."})
        if (week_end_date - week_start_date).days > 6:
            raise ValidationError({"week_end_date": "A timesheet covers at most one week."})

        if Timesheet.objects.filter(user=user, week_start_date=week_start_date).exists():
            raise ConflictError("A timesheet for this week already exists.", code="TIMESHEET_EXISTS")

        ts = Timesheet.objects.create(
            organization_id=organization_id,
            user=user,
            week_start_date=week_start_date,
            week_end_date=week_end_date,
            notes=notes or "",
            status=ApprovalStatus.DRAFT,
        )
        logger.info("timesheet created", extra={"timesheet_id": str(ts.id), "user_id": str(user.id)})
        return ts

    @staticmethod
    def _lock(timesheet_id: UUID) -> Timesheet:
        return Timesheet.objects.select_for_update().get(id=timesheet_id)

    @staticmethod
    def _ensure_editable(ts: Timesheet) -> None:
        if ts.status not in EDITABLE_STATUSES:
            raise ConflictError(
                f"Timesheet cannot be modified in status '{ts.status}'.",
                code="TIMESHEET_NOT_EDITABLE",
            )

    @staticmethod
    def _recalc_total(ts: Timesheet) -> None:
        total = sum((e.total_hours for e in ts.entries.all()), Decimal("0.00"))
        ts.total_hours = total.quantize(Decimal("0.01"))
        ts.save(update_fields=["total_hours", "updated_at"])

    @staticmethod
    def _check_project(ts: Timesheet, project: Project) -> None:
        if not projects_visible_to_profile(ts.user).filter(id=project.id).exists():
            raise not_found(Kind.PROJECT)
        if project.billing_model != BillingModel.TIMESHEET:
            raise ConflictError(
                "Timesheet entries can only be logged against timesheet-billed projects.",
                code="BILLING_MODEL_MISMATCH",
            )

    @staticmethod
    @transaction.atomic
    def update(*, timesheet_id: UUID, notes: Optional[str] = None) -> Timesheet:
        ts = TimesheetService._lock(timesheet_id)
        TimesheetService._ensure_editable(ts)

        if notes is not None:
            ts.notes = notes
            ts.save(update_fields=["notes", "updated_at"])
        return ts

    @staticmethod
    @transaction.atomic
    def delete(*, timesheet_id: UUID) -> None:
        ts = TimesheetService._lock(timesheet_id)
        if ts.status != ApprovalStatus.DRAFT:
            raise ConflictError("Only draft timesheets can be deleted.", code="CANNOT_DELETE")
        ts.delete()
        logger.info("timesheet deleted", extra={"timesheet_id": str(timesheet_id)})

    # ---- entries ----

    @staticmethod
    @transaction.atomic
    def add_entry(
        *,
        timesheet_id: UUID,
        project: Project,
        task_description: str = "",
        hours: Optional[dict] = None,
    ) -> TimesheetEntry:
        ts = TimesheetService._lock(timesheet_id)
        TimesheetService._ensure_editable(ts)
        TimesheetService._check_project(ts, project)

        entry = TimesheetEntry(
            organization_id=ts.organization_id,
            timesheet=ts,
            project=project,
            task_description=task_description or "",
            **_clean_hours(hours or {}),
            hourly_rate=resolve_rate(project, ts.user_id),
        )
        entry.total_hours = entry.compute_total()
        entry.save()

        TimesheetService._recalc_total(ts)
        return entry

    @staticmethod
    @transaction.atomic
    def update_entry(
        *,
        timesheet_id: UUID,
        entry_id: UUID,
        project: Optional[Project] = None,
        task_description: Optional[str] = None,
        hours: Optional[dict] = None,
    ) -> TimesheetEntry:
        ts = TimesheetService._lock(timesheet_id)
        TimesheetService._ensure_editable(ts)

        entry = TimesheetEntry.objects.select_for_update().get(id=entry_id, timesheet=ts)
        if project is not None:
            TimesheetService._check_project(ts, project)
            entry.project = project
            entry.hourly_rate = resolve_rate(project, ts.user_id)
        if task_description is not None:
            entry.task_description = task_description
        for field, value in _clean_hours(hours or {}).items():
            setattr(entry, field, value)

        entry.total_hours = entry.compute_total()
        entry.save()

        TimesheetService._recalc_total(ts)
        return entry

    @staticmethod
    @transaction.atomic
    def remove_entry(*, timesheet_id: UUID, entry_id: UUID) -> None:
        ts = TimesheetService._lock(timesheet_id)
        TimesheetService._ensure_editable(ts)

        deleted, _ = TimesheetEntry.objects.filter(id=entry_id, timesheet=ts).delete()
        if not deleted:
            raise not_found(Kind.TIMESHEET_ENTRY)
        TimesheetService._recalc_total(ts)

    # ---- workflow ----

    @staticmethod
    @transaction.atomic
    def submit(*, timesheet_id: UUID) -> Timesheet:
        ts = TimesheetService._lock(timesheet_id)
        if ts.status not in SUBMITTABLE_STATUSES:
            raise ConflictError(
                f"Timesheet cannot be submitted in status '{ts.status}'.",
                code="INVALID_STATUS",
            )

        ts.status = ApprovalStatus.SUBMITTED
        ts.submitted_at = timezone.now()
        ts.rejection_reason = ""
        ts.save(update_fields=["status", "submitted_at", "rejection_reason", "updated_at"])
        logger.info("timesheet submitted", extra={"timesheet_id": str(ts.id), "total_hours": str(ts.total_hours)})
        return ts

    @staticmethod
    def _ensure_reviewable(ts: Timesheet) -> None:
        if ts.status not in REVIEWABLE_STATUSES:
            raise ConflictError(
                f"Only submitted timesheets can be reviewed (current status '{ts.status}').",
                code="INVALID_STATUS",
            )

    @staticmethod
    @transaction.atomic
    def approve(*, timesheet_id: UUID, approver_id: UUID) -> Timesheet:
        ts = TimesheetService._lock(timesheet_id)
        TimesheetService._ensure_reviewable(ts)

        ts.status = ApprovalStatus.APPROVED
        ts.approved_by_id = approver_id
        ts.approved_at = timezone.now()
        ts.save(update_fields=["status", "approved_by", "approved_at", "updated_at"])
        logger.info("timesheet approved", extra={"timesheet_id": str(ts.id), "approved_by": str(approver_id)})
        return ts

    @staticmethod
    @transaction.atomic
    def reject(*, timesheet_id: UUID, reason: str = "") -> Timesheet:
        ts = TimesheetService._lock(timesheet_id)
        TimesheetService._ensure_reviewable(ts)

        ts.status = ApprovalStatus.REJECTED
        ts.rejection_reason = reason or ""
        ts.save(update_fields=["status", "rejection_reason", "updated_at"])
        logger.info("timesheet rejected", extra={"timesheet_id": str(ts.id)})
        return ts
