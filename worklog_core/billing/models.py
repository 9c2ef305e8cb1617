# worklog_core/billing/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.utils import timezone

from worklog_core.common.models import ScopedModel
from worklog_core.iam.models import UserProfile
from worklog_core.projects.models import Project
from worklog_core.time_entries.models import TimeEntry
from worklog_core.timesheets.models import Timesheet, TimesheetEntry


class BatchStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    SENT = "sent", "Sent"
    PAID = "paid", "Paid"


# batches that count as billed
BILLED_STATUSES = (BatchStatus.SENT, BatchStatus.PAID)


class BatchType(models.TextChoices):
    MANUAL = "manual", "Manual"
    TIME_ENTRIES = "time_entries", "Time entries"
    TIMESHEETS = "timesheets", "Timesheets"


class QuickBooksSyncStatus(models.TextChoices):
    NOT_SYNCED = "not_synced", "Not synced"
    PENDING = "pending", "Pending"
    SYNCED = "synced", "Synced"
    FAILED = "failed", "Failed"


class BillingBatch(ScopedModel):
    """
    Invoice-to-be grouping billing items.
    total_amount / total_hours always equal the sums over the current items
    (recomputed by BillingService under a row lock).
    """
    project = models.ForeignKey(Project, on_delete=models.PROTECT, related_name="billing_batches", null=True, blank=True)

    batch_name = models.CharField(max_length=255)
    batch_type = models.CharField(max_length=16, choices=BatchType.choices, default=BatchType.MANUAL)
    status = models.CharField(max_length=16, choices=BatchStatus.choices, default=BatchStatus.DRAFT, db_index=True)

    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_hours = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    currency = models.CharField(max_length=8, default="USD")

    invoice_number = models.CharField(max_length=32, null=True, blank=True)  # allocated on send
    invoice_date = models.DateField(null=True, blank=True)
    due_date = models.DateField(null=True, blank=True)

    quickbooks_invoice_id = models.CharField(max_length=64, blank=True)
    quickbooks_sync_status = models.CharField(
        max_length=16,
        choices=QuickBooksSyncStatus.choices,
        default=QuickBooksSyncStatus.NOT_SYNCED,
    )

    notes = models.TextField(blank=True)
    created_by = models.ForeignKey(UserProfile, on_delete=models.SET_NULL, null=True, blank=True, related_name="+")
    sent_at = models.DateTimeField(null=True, blank=True)
    paid_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "billing_batch"
        constraints = [
            models.UniqueConstraint(fields=["organization", "invoice_number"], name="uq_batch_invoice_number_per_org"),
        ]
        indexes = [
            models.Index(fields=["organization", "status"]),
            models.Index(fields=["organization", "project"]),
        ]

    def __str__(self) -> str:
        return self.batch_name


class ItemType(models.TextChoices):
    MANUAL = "manual", "Manual"
    TIME_ENTRY = "time_entry", "Time entry"
    TIMESHEET = "timesheet", "Timesheet"


class BillingItem(ScopedModel):
    batch = models.ForeignKey(BillingBatch, on_delete=models.CASCADE, related_name="items")
    time_entry = models.ForeignKey(TimeEntry, on_delete=models.PROTECT, related_name="billing_items", null=True, blank=True)
    timesheet = models.ForeignKey(Timesheet, on_delete=models.PROTECT, related_name="billing_items", null=True, blank=True)
    timesheet_entry = models.ForeignKey(
        TimesheetEntry, on_delete=models.PROTECT, related_name="billing_items", null=True, blank=True
    )

    item_type = models.CharField(max_length=16, choices=ItemType.choices, default=ItemType.MANUAL)
    description = models.TextField()
    quantity = models.DecimalField(max_digits=10, decimal_places=2)
    unit_rate = models.DecimalField(max_digits=10, decimal_places=2)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)  # quantity * unit_rate, fixed at creation

    is_billable = models.BooleanField(default=True)
    billing_date = models.DateField(default=timezone.localdate)

    class Meta:
        db_table = "billing_item"
        indexes = [
            models.Index(fields=["batch"]),
        ]
