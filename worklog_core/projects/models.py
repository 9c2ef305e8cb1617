# worklog_core/projects/models.py
from __future__ import annotations

from django.db import models
from django.utils import timezone

from worklog_core.common.models import ScopedModel
from worklog_core.customers.models import Customer
from worklog_core.iam.models import UserProfile
from worklog_core.sows.models import SOW


class BillingModel(models.TextChoices):
    TIMESHEET = "timesheet", "Timesheet"
    TASK_BASED = "task-based", "Task based"


class ProjectStatus(models.TextChoices):
    PLANNING = "planning", "Planning"
    ACTIVE = "active", "Active"
    ON_HOLD = "on_hold", "On hold"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


# projects in these states block deleting their customer / SOW
OPEN_PROJECT_STATUSES = (ProjectStatus.PLANNING, ProjectStatus.ACTIVE)


class Project(ScopedModel):
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="projects")
    sow = models.ForeignKey(SOW, on_delete=models.PROTECT, related_name="projects", null=True, blank=True)

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    billing_model = models.CharField(max_length=16, choices=BillingModel.choices, default=BillingModel.TIMESHEET)
    status = models.CharField(max_length=16, choices=ProjectStatus.choices, default=ProjectStatus.ACTIVE, db_index=True)
    is_active = models.BooleanField(default=True)

    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    budget_hours = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    class Meta:
        db_table = "projects_project"
        indexes = [
            models.Index(fields=["organization", "status"]),
            models.Index(fields=["organization", "customer"]),
        ]

    def __str__(self) -> str:
        return self.name


class ProjectMembership(ScopedModel):
    """
    Assignment of a user to a project.
    Removal is soft (is_active=False, left_at set) so history survives.
    """
    project = models.ForeignKey(Project, on_delete=models.CASCADE, related_name="memberships")
    user = models.ForeignKey(UserProfile, on_delete=models.CASCADE, related_name="project_memberships")

    role = models.CharField(max_length=64, default="member")
    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)

    is_active = models.BooleanField(default=True)
    joined_at = models.DateTimeField(default=timezone.now)
    left_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "projects_membership"
        constraints = [
            models.UniqueConstraint(fields=["project", "user"], name="uq_project_membership_user"),
        ]
        indexes = [
            models.Index(fields=["organization", "user", "is_active"]),
        ]

    def __str__(self) -> str:
        return f"{self.user_id} @ {self.project_id}"
