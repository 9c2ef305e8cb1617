# worklog_core/organizations/services.py
from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from django.db import transaction
from rest_framework.exceptions import ValidationError

from worklog_core.organizations.models import Organization, SubscriptionPlan

logger = logging.getLogger(__name__)


class OrganizationService:
    """
    All Organization mutations live here (write-model boundary).
    """

    @staticmethod
    @transaction.atomic
    def create(
        *,
        name: str,
        domain: Optional[str] = None,
        settings: Optional[dict] = None,
        subscription_plan: str = SubscriptionPlan.BASIC,
    ) -> Organization:
        name = (name or "").strip()
        if not name:
            raise ValidationError({"name": "This field is required."})

        if subscription_plan not in SubscriptionPlan.values:
            raise ValidationError({"subscription_plan": f"Invalid plan. Allowed: {list(SubscriptionPlan.values)}"})

        org = Organization.objects.create(
            name=name,
            domain=(domain or "").strip() or None,
            settings=settings or {},
            subscription_plan=subscription_plan,
        )
        logger.info("organization created", extra={"organization_id": str(org.id)})
        return org

    @staticmethod
    @transaction.atomic
    def update(
        *,
        organization_id: UUID,
        name: Optional[str] = None,
        domain: Optional[str] = None,
        settings: Optional[dict] = None,
    ) -> Organization:
        org = Organization.objects.select_for_update().get(id=organization_id)

        update_fields = ["updated_at"]
        if name is not None:
            name = name.strip()
            if not name:
                raise ValidationError({"name": "This field may not be blank."})
            org.name = name
            update_fields.append("name")

        if domain is not None:
            domain = domain.strip() or None
            if domain and Organization.objects.exclude(id=org.id).filter(domain=domain).exists():
                raise ValidationError({"domain": "Domain is already in use."})
            org.domain = domain
            update_fields.append("domain")

        if settings is not None:
            if not isinstance(settings, dict):
                raise ValidationError({"settings": "Must be a JSON object."})
            # merge, never replace wholesale
            org.settings = {**(org.settings or {}), **settings}
            update_fields.append("settings")

        org.save(update_fields=update_fields)
        return org
