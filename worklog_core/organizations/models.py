# worklog_core/organizations/models.py
import uuid

from django.db import models


class SubscriptionPlan(models.TextChoices):
    BASIC = "basic", "Basic"
    PROFESSIONAL = "professional", "Professional"
    ENTERPRISE = "enterprise", "Enterprise"


class Organization(models.Model):
    """
    Tenant root. Every other entity is owned by exactly one Organization.
    NOT a ScopedModel (it *is* the scope). Never hard-deleted.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=255)
    domain = models.CharField(max_length=255, unique=True, null=True, blank=True)

    # free-form tenant settings (timezone, week start, defaults...)
    settings = models.JSONField(default=dict, blank=True)

    subscription_plan = models.CharField(
        max_length=32,
        choices=SubscriptionPlan.choices,
        default=SubscriptionPlan.BASIC,
    )
    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "organizations_organization"
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name
