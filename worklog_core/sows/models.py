# worklog_core/sows/models.py
from __future__ import annotations

from django.db import models

from worklog_core.common.models import ScopedModel
from worklog_core.customers.models import Customer


class SOWStatus(models.TextChoices):
    DRAFT = "draft", "Draft"
    ACTIVE = "active", "Active"
    COMPLETED = "completed", "Completed"
    CANCELLED = "cancelled", "Cancelled"


class SOW(ScopedModel):
    """Statement of work agreed with a customer."""
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="sows")

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    scope = models.TextField(blank=True)
    deliverables = models.JSONField(default=list, blank=True)
    billing_terms = models.TextField(blank=True)

    hourly_rate = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    total_budget = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    status = models.CharField(max_length=16, choices=SOWStatus.choices, default=SOWStatus.DRAFT, db_index=True)

    class Meta:
        db_table = "sows_sow"
        indexes = [
            models.Index(fields=["organization", "customer"]),
            models.Index(fields=["organization", "status"]),
        ]

    def __str__(self) -> str:
        return self.title
