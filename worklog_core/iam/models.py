# worklog_core/iam/models.py
import uuid

from django.conf import settings
from django.db import models

from worklog_core.common.roles import ROLE_ADMIN, ROLE_CLIENT, ROLE_EMPLOYEE, ROLE_MANAGER
from worklog_core.organizations.models import Organization


class Role(models.TextChoices):
    ADMIN = ROLE_ADMIN, "Admin"
    MANAGER = ROLE_MANAGER, "Manager"
    EMPLOYEE = ROLE_EMPLOYEE, "Employee"
    CLIENT = ROLE_CLIENT, "Client"


class StepStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    DONE = "done", "Done"
    FAILED = "failed", "Failed"
    SKIPPED = "skipped", "Skipped"


class IdpSyncStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SYNCED = "synced", "Synced"
    PARTIAL = "partial", "Partial"
    FAILED = "failed", "Failed"


class UserProfile(models.Model):
    """
    Worklog user anchored to Django's AUTH_USER_MODEL (email + names live there).

    Organization affiliation is fixed at creation. keycloak_id links the
    row to the identity provider account (the JWT `sub` claim).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    organization = models.ForeignKey(Organization, on_delete=models.PROTECT, related_name="user_profiles")

    keycloak_id = models.CharField(max_length=255, unique=True, null=True, blank=True)
    role = models.CharField(max_length=16, choices=Role.choices, default=Role.EMPLOYEE, db_index=True)
    is_active = models.BooleanField(default=True)

    # identity-provider provisioning saga, one status per step
    idp_account_status = models.CharField(max_length=16, choices=StepStatus.choices, default=StepStatus.PENDING)
    idp_role_status = models.CharField(max_length=16, choices=StepStatus.choices, default=StepStatus.PENDING)
    idp_group_status = models.CharField(max_length=16, choices=StepStatus.choices, default=StepStatus.PENDING)
    idp_last_error = models.TextField(blank=True, default="")
    idp_synced_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "iam_user_profile"
        indexes = [
            models.Index(fields=["organization", "is_active"]),
            models.Index(fields=["organization", "role"]),
        ]

    def __str__(self) -> str:
        return f"{self.user.email} ({self.role})"

    @property
    def email(self) -> str:
        return self.user.email

    @property
    def full_name(self) -> str:
        return f"{self.user.first_name} {self.user.last_name}".strip()

    @property
    def idp_steps(self) -> dict[str, str]:
        return {
            "create_account": self.idp_account_status,
            "assign_role": self.idp_role_status,
            "assign_group": self.idp_group_status,
        }

    @property
    def idp_sync_status(self) -> str:
        steps = self.idp_steps
        finished = {StepStatus.DONE, StepStatus.SKIPPED}
        if all(s in finished for s in steps.values()):
            return IdpSyncStatus.SYNCED
        if steps["create_account"] == StepStatus.FAILED:
            return IdpSyncStatus.FAILED
        if all(s == StepStatus.PENDING for s in steps.values()):
            return IdpSyncStatus.PENDING
        return IdpSyncStatus.PARTIAL
