# worklog_core/iam/auth.py

from __future__ import annotations

from django.conf import settings
from rest_framework.exceptions import AuthenticationFailed
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.backends import TokenBackend
from rest_framework_simplejwt.exceptions import TokenBackendError

from worklog_core.common.scope import ensure_profile_usable
from worklog_core.iam.models import UserProfile


def _decoder() -> TokenBackend:
    # Signature is not checked, so the algorithm/key only satisfy the backend constructor.
    return TokenBackend("HS256", signing_key=settings.SECRET_KEY)


def decode_unverified(raw_token) -> dict:
    try:
        payload = _decoder().decode(raw_token, verify=False)
    except TokenBackendError:
        raise AuthenticationFailed("Invalid token.", code="INVALID_TOKEN")
    if not isinstance(payload, dict) or not payload.get("sub"):
        raise AuthenticationFailed("Token has no subject.", code="INVALID_TOKEN")
    return payload


class KeycloakBearerAuthentication(JWTAuthentication):
    """
    Authenticate using:
      Authorization: Bearer <Keycloak access token>

    The token is decoded, not verified (issuance and verification belong to
    the identity provider). Its `sub` claim is matched to
    UserProfile.keycloak_id; the Django auth user behind that profile
    becomes request.user.
    """

    def get_validated_token(self, raw_token):
        return decode_unverified(raw_token)

    def get_user(self, validated_token):
        profile = (
            UserProfile.objects.select_related("user", "organization")
            .filter(keycloak_id=validated_token["sub"])
            .first()
        )
        if profile is None:
            raise AuthenticationFailed("User not found.", code="USER_NOT_FOUND")

        ensure_profile_usable(profile)
        return profile.user
