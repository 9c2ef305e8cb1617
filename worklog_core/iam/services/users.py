# worklog_core/iam/services/users.py
from __future__ import annotations

import logging
from typing import Optional

from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework.exceptions import ValidationError

from worklog_core.common.api.exceptions import ConflictError
from worklog_core.common.scope import Caller
from worklog_core.iam.models import Role, StepStatus, UserProfile
from worklog_core.iam.services.provisioning import IdentityProvider, ProvisioningService

logger = logging.getLogger(__name__)


def _email_taken(email: str, *, exclude_user_id: Optional[int] = None) -> bool:
    qs = get_user_model().objects.filter(email__iexact=email)
    if exclude_user_id is not None:
        qs = qs.exclude(id=exclude_user_id)
    return qs.exists()


class UserService:
    """
    User lifecycle within one organization.
    Email and names are stored on the Django auth user; everything else on
    the UserProfile.
    """

    @staticmethod
    def create(
        *,
        caller: Caller,
        email: str,
        first_name: str,
        last_name: str,
        role: str = Role.EMPLOYEE,
        password: Optional[str] = None,
        keycloak_id: Optional[str] = None,
        idp: Optional[IdentityProvider] = None,
    ) -> UserProfile:
        email = (email or "").strip().lower()
        if not email:
            raise ValidationError({"email": "This field is required."})
        if role not in Role.values:
            raise ValidationError({"role": f"Invalid role. Allowed: {list(Role.values)}"})
        if _email_taken(email):
            raise ConflictError("User with this email already exists.", code="USER_EXISTS")
        if keycloak_id and UserProfile.objects.filter(keycloak_id=keycloak_id).exists():
            raise ConflictError("User with this identity provider id already exists.", code="USER_EXISTS")

        with transaction.atomic():
            user = get_user_model().objects.create_user(
                username=email,
                email=email,
                first_name=(first_name or "").strip(),
                last_name=(last_name or "").strip(),
                password=password,
            )
            profile = UserProfile.objects.create(
                user=user,
                organization_id=caller.organization_id,
                keycloak_id=keycloak_id or None,
                role=role,
                # an id from the payload means the account already exists upstream
                idp_account_status=StepStatus.DONE if keycloak_id else StepStatus.PENDING,
            )
            # a failed account creation rolls the local rows back as well
            ProvisioningService.run(profile, idp=idp, password=password, abort_on_account_failure=True)

        logger.info(
            "user created",
            extra={"profile_id": str(profile.id), "role": role, "idp_sync_status": str(profile.idp_sync_status)},
        )
        return profile

    @staticmethod
    @transaction.atomic
    def update(
        *,
        profile_id,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        role: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> UserProfile:
        """Authorization (ownership, change_role) is decided by the caller of this service."""
        profile = UserProfile.objects.select_for_update().select_related("user", "organization").get(id=profile_id)
        user = profile.user

        user_fields = []
        if first_name is not None:
            user.first_name = first_name.strip()
            user_fields.append("first_name")
        if last_name is not None:
            user.last_name = last_name.strip()
            user_fields.append("last_name")
        if user_fields:
            user.save(update_fields=user_fields)

        profile_fields = ["updated_at"]
        role_changed = False
        if role is not None and role != profile.role:
            if role not in Role.values:
                raise ValidationError({"role": f"Invalid role. Allowed: {list(Role.values)}"})
            profile.role = role
            profile_fields.append("role")
            role_changed = True

        if is_active is not None and is_active != profile.is_active:
            profile.is_active = is_active
            profile_fields.append("is_active")

        profile.save(update_fields=profile_fields)

        if role_changed:
            logger.info("user role changed", extra={"profile_id": str(profile.id), "role": role})
            ProvisioningService.reset_role_step(profile)
            transaction.on_commit(lambda: _sync_role(profile.id))

        return profile

    @staticmethod
    @transaction.atomic
    def deactivate(*, caller: Caller, profile_id) -> UserProfile:
        if profile_id == caller.profile_id:
            raise ConflictError("You cannot deactivate your own account.", code="CANNOT_DELETE")

        profile = UserProfile.objects.select_for_update().get(id=profile_id)
        if profile.is_active:
            profile.is_active = False
            profile.save(update_fields=["is_active", "updated_at"])
            logger.info("user deactivated", extra={"profile_id": str(profile.id)})
        return profile


def _sync_role(profile_id) -> None:
    profile = UserProfile.objects.select_related("user", "organization").get(id=profile_id)
    if profile.idp_role_status == StepStatus.PENDING:
        ProvisioningService.run(profile)
