# worklog_core/customers/services.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from worklog_core.common.api.exceptions import ConflictError
from worklog_core.customers.models import ADDRESS_FIELDS, Customer, default_billing_settings

logger = logging.getLogger(__name__)


def _clean_address(address) -> dict:
    if address is None:
        return {}
    if not isinstance(address, dict):
        raise ValidationError({"address": "Must be a JSON object."})
    unknown = sorted(set(address) - set(ADDRESS_FIELDS))
    if unknown:
        raise ValidationError({"address": f"Unknown fields: {unknown}. Allowed: {list(ADDRESS_FIELDS)}"})
    return {k: v for k, v in address.items() if v not in (None, "")}


def _clean_billing_settings(billing_settings, *, base: Optional[dict] = None) -> dict:
    if billing_settings is None:
        return base or default_billing_settings()
    if not isinstance(billing_settings, dict):
        raise ValidationError({"billing_settings": "Must be a JSON object."})
    return {**(base or default_billing_settings()), **billing_settings}


class CustomerService:

    @staticmethod
    @transaction.atomic
    def create(
        *,
        organization_id: UUID,
        name: str,
        email: str = "",
        phone: str = "",
        address: Optional[dict] = None,
        billing_settings: Optional[dict] = None,
    ) -> Customer:
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "This field is required."})

        customer = Customer.objects.create(
            organization_id=organization_id,
            name=name,
            email=(email or "").strip(),
            phone=(phone or "").strip(),
            address=_clean_address(address),
            billing_settings=_clean_billing_settings(billing_settings),
        )
        logger.info("customer created", extra={"customer_id": str(customer.id)})
        return customer

    @staticmethod
    @transaction.atomic
    def update(*, customer_id: UUID, **changes) -> Customer:
        customer = Customer.objects.select_for_update().get(id=customer_id)

        update_fields = ["updated_at"]
        if changes.get("name") is not None:
            name = changes["name"].strip()
            if not name:
                raise ValidationError({"name": "This field may not be blank."})
            customer.name = name
            update_fields.append("name")
        for field in ("email", "phone"):
            if changes.get(field) is not None:
                setattr(customer, field, changes[field].strip())
                update_fields.append(field)
        if "address" in changes and changes["address"] is not None:
            customer.address = _clean_address(changes["address"])
            update_fields.append("address")
        if "billing_settings" in changes and changes["billing_settings"] is not None:
            customer.billing_settings = _clean_billing_settings(changes["billing_settings"], base=customer.billing_settings)
            update_fields.append("billing_settings")
        if changes.get("is_active") is not None:
            customer.is_active = changes["is_active"]
            update_fields.append("is_active")

        customer.save(update_fields=update_fields)
        return customer

    @staticmethod
    @transaction.atomic
    def deactivate(*, customer_id: UUID) -> Customer:
        from worklog_core.projects.models import OPEN_PROJECT_STATUSES, Project

        customer = Customer.objects.select_for_update().get(id=customer_id)
        if Project.objects.filter(customer=customer, status__in=OPEN_PROJECT_STATUSES).exists():
            raise ConflictError(
                "Customer has planning or active projects and cannot be deleted.",
                code="CUSTOMER_HAS_ACTIVE_PROJECTS",
            )

        customer.is_active = False
        customer.save(update_fields=["is_active", "updated_at"])
        logger.info("customer deactivated", extra={"customer_id": str(customer.id)})
        return customer
