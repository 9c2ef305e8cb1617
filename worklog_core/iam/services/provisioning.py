# worklog_core/iam/services/provisioning.py
"""
Identity-provider provisioning as a small saga.

Steps run in order (create_account -> assign_role -> assign_group) and each
records its own status on the UserProfile, so a retry only repeats what is
not done yet.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

from django.conf import settings
from django.utils import timezone

from worklog_core.common.api.exceptions import UpstreamServiceError
from worklog_core.iam.keycloak import IdentityProviderError, KeycloakAdminClient
from worklog_core.iam.models import StepStatus, UserProfile

logger = logging.getLogger(__name__)


class IdentityProvider(Protocol):
    def create_user(self, *, email: str, first_name: str, last_name: str, password: Optional[str] = None) -> str: ...

    def assign_realm_role(self, *, user_id: str, role_name: str) -> None: ...

    def add_to_group(self, *, user_id: str, group_name: str) -> None: ...


def get_identity_provider() -> Optional[IdentityProvider]:
    """None when provisioning is switched off."""
    if not settings.KEYCLOAK_PROVISIONING_ENABLED:
        return None
    return KeycloakAdminClient.from_settings()


def organization_group_name(profile: UserProfile) -> str:
    org = profile.organization
    return org.domain or org.name


def _create_account(profile: UserProfile, idp: IdentityProvider, password: Optional[str]) -> None:
    profile.keycloak_id = idp.create_user(
        email=profile.user.email,
        first_name=profile.user.first_name,
        last_name=profile.user.last_name,
        password=password,
    )


def _assign_role(profile: UserProfile, idp: IdentityProvider, password: Optional[str]) -> None:
    if not profile.keycloak_id:
        raise IdentityProviderError("No identity provider account to assign a role to.")
    idp.assign_realm_role(user_id=profile.keycloak_id, role_name=profile.role)


def _assign_group(profile: UserProfile, idp: IdentityProvider, password: Optional[str]) -> None:
    if not profile.keycloak_id:
        raise IdentityProviderError("No identity provider account to add to a group.")
    idp.add_to_group(user_id=profile.keycloak_id, group_name=organization_group_name(profile))


STEP_CREATE_ACCOUNT = "create_account"
STEP_ASSIGN_ROLE = "assign_role"
STEP_ASSIGN_GROUP = "assign_group"

STEPS: list[tuple[str, str, Callable[[UserProfile, IdentityProvider, Optional[str]], None]]] = [
    (STEP_CREATE_ACCOUNT, "idp_account_status", _create_account),
    (STEP_ASSIGN_ROLE, "idp_role_status", _assign_role),
    (STEP_ASSIGN_GROUP, "idp_group_status", _assign_group),
]

_SAVE_FIELDS = [
    "keycloak_id",
    "idp_account_status",
    "idp_role_status",
    "idp_group_status",
    "idp_last_error",
    "idp_synced_at",
    "updated_at",
]


class ProvisioningService:

    @staticmethod
    def run(
        profile: UserProfile,
        *,
        idp: Optional[IdentityProvider] = None,
        password: Optional[str] = None,
        abort_on_account_failure: bool = False,
    ) -> UserProfile:
        """
        Run every step that is not done.

        - provisioning disabled (no idp): unfinished steps become skipped
        - create_account fails: later steps are not attempted; raises 502
          when abort_on_account_failure is set (initial creation), otherwise
          the failure is only recorded (retry)
        - assign_role / assign_group fail: recorded, remaining steps still run
        """
        client = idp if idp is not None else get_identity_provider()

        if client is None:
            for _, field, _ in STEPS:
                if getattr(profile, field) != StepStatus.DONE:
                    setattr(profile, field, StepStatus.SKIPPED)
            profile.save(update_fields=_SAVE_FIELDS)
            return profile

        errors: list[str] = []
        for step, field, perform in STEPS:
            if getattr(profile, field) == StepStatus.DONE:
                continue
            try:
                perform(profile, client, password)
            except IdentityProviderError as exc:
                setattr(profile, field, StepStatus.FAILED)
                errors.append(f"{step}: {exc}")
                logger.warning(
                    "identity provider step failed",
                    extra={"step": step, "profile_id": str(profile.id), "error": str(exc)},
                )
                if step == STEP_CREATE_ACCOUNT:
                    profile.idp_last_error = "; ".join(errors)
                    profile.save(update_fields=_SAVE_FIELDS)
                    if abort_on_account_failure:
                        raise UpstreamServiceError(
                            "Failed to create the identity provider account.",
                            code="IDENTITY_PROVIDER_ERROR",
                        )
                    return profile
                continue
            setattr(profile, field, StepStatus.DONE)

        profile.idp_last_error = "; ".join(errors)
        if not errors:
            profile.idp_synced_at = timezone.now()
        profile.save(update_fields=_SAVE_FIELDS)

        logger.info(
            "identity provider provisioning finished",
            extra={"profile_id": str(profile.id), "idp_sync_status": str(profile.idp_sync_status)},
        )
        return profile

    @staticmethod
    def reset_role_step(profile: UserProfile) -> None:
        """A role change has to be pushed to the identity provider again."""
        if profile.idp_role_status in (StepStatus.DONE, StepStatus.FAILED):
            profile.idp_role_status = StepStatus.PENDING
            profile.save(update_fields=["idp_role_status", "updated_at"])

    @staticmethod
    def pending_profiles(*, organization_id=None):
        qs = UserProfile.objects.select_related("user", "organization").exclude(
            idp_account_status__in=[StepStatus.DONE, StepStatus.SKIPPED],
            idp_role_status__in=[StepStatus.DONE, StepStatus.SKIPPED],
            idp_group_status__in=[StepStatus.DONE, StepStatus.SKIPPED],
        )
        if organization_id is not None:
            qs = qs.filter(organization_id=organization_id)
        return qs.order_by("created_at")
