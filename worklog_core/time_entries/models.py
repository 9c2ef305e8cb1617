# worklog_core/time_entries/models.py
from __future__ import annotations

from django.db import models

from worklog_core.common.models import ScopedModel
from worklog_core.common.workflow import ApprovalStatus
from worklog_core.iam.models import UserProfile
from worklog_core.projects.models import Project


class TimeEntry(ScopedModel):
    """
    Hours logged against a task-based project.

    Lifecycle: draft -> submitted -> approved | rejected, rejected -> submitted.
    Only draft/rejected entries can be edited or deleted (enforced in services).
    """
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name="time_entries")
    user = models.ForeignKey(UserProfile, on_delete=models.PROTECT, related_name="time_entries")

    entry_date = models.DateField(db_index=True)
    duration_hours = models.DecimalField(max_digits=5, decimal_places=2)
    task_description = models.TextField()
    is_billable = models.BooleanField(default=True)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
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
        db_table = "time_entries_time_entry"
        indexes = [
            models.Index(fields=["organization", "user", "entry_date"]),
            models.Index(fields=["organization", "project", "status"]),
        ]
