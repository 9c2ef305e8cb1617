# worklog_core/timesheets/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from worklog_core.common.models import ScopedModel
from worklog_core.common.workflow import ApprovalStatus
from worklog_core.iam.models import UserProfile
from worklog_core.projects.models import Project

WEEKDAY_FIELDS = (
    "hours_monday",
    "hours_tuesday",
    "hours_wednesday",
    "hours_thursday",
    "hours_friday",
    "hours_saturday",
    "hours_sunday",
)


class Timesheet(ScopedModel):
    """
    One week of a user's hours.
    total_hours is derived from the entries and recomputed by services under a row lock.
    """
    user = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="timesheets")

    week_start_date = models.DateField()
    week_end_date = models.DateField()

    total_hours = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))
    notes = models.TextField(blank=True)

    status = models.CharField(max_length=16, choices=ApprovalStatus.choices, default=ApprovalStatus.DRAFT, db_index=True)
    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    approved_by = models.ForeignKey(
        UserProfile,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="+",
    )
    rejection_reason = models.TextField(blank=True)

    class Meta:
        db_table = "timesheets_timesheet"
        constraints = [
            models.UniqueConstraint(fields=["user", "week_start_date"], name="uq_timesheet_user_week"),
        ]
        indexes = [
            models.Index(fields=["organization", "user", "week_start_date"]),
            models.Index(fields=["organization", "status"]),
        ]


class TimesheetEntry(ScopedModel):
    timesheet = models.ForeignKey(Timesheet, on_delete=models.CASCADE, related_name="entries")
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name="timesheet_entries")
    task_description = models.TextField(blank=True)

    hours_monday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    hours_tuesday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    hours_wednesday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    hours_thursday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    hours_friday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    hours_saturday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))
    hours_sunday = models.DecimalField(max_digits=4, decimal_places=2, default=Decimal("0.00"))

    total_hours = models.DecimalField(max_digits=6, decimal_places=2, default=Decimal("0.00"))
    # rate in force when the hours were logged; billing prices the entry with it
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = "timesheets_entry"
        indexes = [
            models.Index(fields=["timesheet", "project"]),
        ]

    def compute_total(self) -> Decimal:
        return sum((getattr(self, f) or Decimal("0.00") for f in WEEKDAY_FIELDS), Decimal("0.00"))
