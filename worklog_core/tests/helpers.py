# worklog_core/tests/helpers.py
from __future__ import annotations

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.backends import TokenBackend

from worklog_core.iam.models import StepStatus, UserProfile


def make_profile(org, *, email: str, role: str = "employee", keycloak_id: str | None = None, is_active: bool = True):
    user = get_user_model().objects.create_user(
        username=email,
        email=email,
        first_name=email.split("@")[0].capitalize(),
        last_name="Tester",
        password="pass12345",
    )
    return UserProfile.objects.create(
        user=user,
        organization=org,
        role=role,
        keycloak_id=keycloak_id or f"kc-{email}",
        is_active=is_active,
        idp_account_status=StepStatus.SKIPPED,
        idp_role_status=StepStatus.SKIPPED,
        idp_group_status=StepStatus.SKIPPED,
    )


def client_for(profile) -> APIClient:
    c = APIClient()
    c.force_authenticate(user=profile.user)
    return c


def bearer(claims: dict) -> dict:
    """
    Authorization header carrying an unsigned-for-our-purposes JWT; the API
    decodes it without checking the signature.
    """
    token = TokenBackend("HS256", signing_key="worklog-test-signing-key-0123456789abcdef").encode(claims)
    return {"HTTP_AUTHORIZATION": f"Bearer {token}"}


def data(resp):
    return resp.json()["data"]


def error_code(resp) -> str:
    return resp.json()["error"]["code"]
