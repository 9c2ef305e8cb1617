# worklog_core/iam/keycloak.py
"""
Minimal Keycloak admin REST client.

Authenticates with the client-credentials grant of a service-account client
in the realm and exposes only the calls the provisioning saga needs.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured

from worklog_core.common.roles import ALL_ROLES

logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class KeycloakAdminClient:
    def __init__(
        self,
        *,
        base_url: str,
        realm: str,
        client_id: str,
        client_secret: str,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.realm = realm
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.session = session or requests.Session()
        self._access_token: Optional[str] = None

    @classmethod
    def from_settings(cls) -> "KeycloakAdminClient":
        if not settings.KEYCLOAK_URL:
            raise ImproperlyConfigured("KEYCLOAK_URL is required when KEYCLOAK_PROVISIONING_ENABLED is set.")
        return cls(
            base_url=settings.KEYCLOAK_URL,
            realm=settings.KEYCLOAK_REALM,
            client_id=settings.KEYCLOAK_ADMIN_CLIENT_ID,
            client_secret=settings.KEYCLOAK_ADMIN_CLIENT_SECRET,
            timeout=settings.KEYCLOAK_TIMEOUT_SECONDS,
        )

    # ---- transport ----

    @property
    def admin_url(self) -> str:
        return f"{self.base_url}/admin/realms/{self.realm}"

    def _token(self) -> str:
        if self._access_token:
            return self._access_token
        try:
            resp = self.session.post(
                f"{self.base_url}/realms/{self.realm}/protocol/openid-connect/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise IdentityProviderError(f"Token request failed: {exc}") from exc
        if resp.status_code != 200:
            raise IdentityProviderError("Token request rejected.", status_code=resp.status_code)
        body = self._json(resp, "token response")
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise IdentityProviderError("Token response has no access_token.", status_code=resp.status_code)
        self._access_token = token
        return self._access_token

    @staticmethod
    def _json(resp: requests.Response, what: str) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise IdentityProviderError(f"Unreadable {what}: {exc}", status_code=resp.status_code) from exc

    @staticmethod
    def _list_of_dicts(value: Any, what: str) -> list[dict]:
        if value is None:
            return []
        if not isinstance(value, list) or not all(isinstance(v, dict) for v in value):
            raise IdentityProviderError(f"Unexpected {what} payload.")
        return value

    def _request(self, method: str, path: str, *, expected: tuple[int, ...] = (200, 201, 204), **kwargs) -> requests.Response:
        headers = {"Authorization": f"Bearer {self._token()}"}
        try:
            resp = self.session.request(method, f"{self.admin_url}{path}", headers=headers, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise IdentityProviderError(f"{method} {path} failed: {exc}") from exc
        if resp.status_code not in expected:
            raise IdentityProviderError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}",
                status_code=resp.status_code,
            )
        return resp

    # ---- users ----

    def find_user_id(self, email: str) -> Optional[str]:
        resp = self._request("GET", "/users", params={"email": email, "exact": "true"})
        users = self._list_of_dicts(self._json(resp, "user search"), "user search")
        if not users:
            return None
        if not users[0].get("id"):
            raise IdentityProviderError("User search result has no id.")
        return users[0]["id"]

    def create_user(self, *, email: str, first_name: str, last_name: str, password: Optional[str] = None) -> str:
        """Returns the Keycloak user id. An existing account with the same email is reused."""
        payload: dict[str, Any] = {
            "username": email,
            "email": email,
            "firstName": first_name,
            "lastName": last_name,
            "enabled": True,
            "emailVerified": False,
        }
        if password:
            payload["credentials"] = [{"type": "password", "value": password, "temporary": False}]

        resp = self._request("POST", "/users", json=payload, expected=(201, 409))
        if resp.status_code == 409:
            existing = self.find_user_id(email)
            if existing is None:
                raise IdentityProviderError("User exists in identity provider but could not be resolved.", status_code=409)
            return existing

        location = resp.headers.get("Location", "")
        user_id = location.rstrip("/").rsplit("/", 1)[-1]
        if not user_id:
            user_id = self.find_user_id(email) or ""
        if not user_id:
            raise IdentityProviderError("Identity provider did not return a user id.")
        return user_id

    # ---- roles ----

    def assign_realm_role(self, *, user_id: str, role_name: str) -> None:
        """Maps role_name and drops any other application role the user holds."""
        role = self._json(self._request("GET", f"/roles/{role_name}"), "role")
        if not isinstance(role, dict) or not role.get("id"):
            raise IdentityProviderError(f"Role '{role_name}' payload has no id.")

        current = self._list_of_dicts(
            self._json(self._request("GET", f"/users/{user_id}/role-mappings/realm"), "role mappings"),
            "role mappings",
        )
        stale = [r for r in current if r.get("name") in ALL_ROLES and r.get("name") != role_name]
        if stale:
            self._request("DELETE", f"/users/{user_id}/role-mappings/realm", json=stale)

        self._request("POST", f"/users/{user_id}/role-mappings/realm", json=[role])

    # ---- groups ----

    def add_to_group(self, *, user_id: str, group_name: str) -> None:
        resp = self._request("GET", "/groups", params={"search": group_name, "exact": "true"})
        groups = self._list_of_dicts(self._json(resp, "group search"), "group search")
        group = next((g for g in groups if g.get("name") == group_name and g.get("id")), None)
        if group is None:
            raise IdentityProviderError(f"Group '{group_name}' does not exist.", status_code=404)
        self._request("PUT", f"/users/{user_id}/groups/{group['id']}")
