# worklog_core/common/views.py
from __future__ import annotations

import time
from uuid import UUID

from django.conf import settings
from django.utils import timezone
from django.utils.dateparse import parse_date
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema
from rest_framework import viewsets
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from worklog_core.common.permissions import PolicyPermission
from worklog_core.common.policy import Action, Kind, Resource, authorize, not_found
from worklog_core.common.scope import Caller, resolve_caller

_STARTED_AT = time.monotonic()


class HealthView(APIView):
    """Process liveness. Public."""
    authentication_classes: list = []
    permission_classes = [AllowAny]

    @extend_schema(tags=["Health"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        return Response(
            {
                "status": "OK",
                "timestamp": timezone.now().isoformat(),
                "uptime": round(time.monotonic() - _STARTED_AT, 3),
                "environment": getattr(settings, "APP_ENV", "local"),
            }
        )


class ScopedViewSet(viewsets.GenericViewSet):
    """
    Base ViewSet for tenant-scoped resources.

    - Every action requires an authenticated caller with a profile.
    - Collection-level authorization goes through the central policy.
    - Handlers read the tenant from self.caller, never from the payload.
    """
    permission_classes = [IsAuthenticated, PolicyPermission]
    policy_kind: Kind

    @property
    def caller(self) -> Caller:
        return resolve_caller(self.request)

    def authorize(self, action: Action, obj, *, owner_id: UUID | None = None, kind: Kind | None = None) -> None:
        """Object-level policy check; obj must already come from a tenant-scoped selector."""
        authorize(
            self.caller,
            action,
            Resource(
                kind=kind or self.policy_kind,
                organization_id=getattr(obj, "organization_id", None),
                owner_id=owner_id,
            ),
        )

    def parse_pk(self, pk, kind: Kind | None = None) -> UUID:
        """Malformed ids behave like missing rows."""
        try:
            return UUID(str(pk))
        except (TypeError, ValueError):
            raise not_found(kind or self.policy_kind)


def uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError({field_name: "Invalid UUID"})


def bool_or_none(value: str | None, field_name: str) -> bool | None:
    if value in (None, ""):
        return None
    lowered = str(value).strip().lower()
    if lowered in ("1", "true", "yes"):
        return True
    if lowered in ("0", "false", "no"):
        return False
    raise ValidationError({field_name: "Must be a boolean."})


def date_or_none(value: str | None, field_name: str):
    if not value:
        return None
    try:
        parsed = parse_date(str(value))
    except ValueError:
        parsed = None
    if parsed is None:
        raise ValidationError({field_name: "Invalid date, expected YYYY-MM-DD."})
    return parsed
