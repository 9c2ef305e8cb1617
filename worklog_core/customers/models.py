# worklog_core/customers/models.py
from __future__ import annotations

from django.db import models

from worklog_core.common.models import ScopedModel


def default_billing_settings() -> dict:
    return {"currency": "USD", "payment_terms": "Net 30"}


ADDRESS_FIELDS = ("street", "city", "state", "postal_code", "country")


class Customer(ScopedModel):
    name = models.CharField(max_length=255)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=64, blank=True)

    # {street, city, state, postal_code, country}
    address = models.JSONField(default=dict, blank=True)
    billing_settings = models.JSONField(default=default_billing_settings, blank=True)

    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "customers_customer"
        indexes = [
            models.Index(fields=["organization", "is_active"]),
            models.Index(fields=["organization", "name"]),
        ]

    def __str__(self) -> str:
        return self.name
