# worklog_core/iam/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action

from worklog_core.common.api.exceptions import ConflictError
from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.policy import Action, Kind
from worklog_core.common.views import ScopedViewSet, bool_or_none
from worklog_core.iam.api.serializers import UserCreateSerializer, UserSerializer, UserUpdateSerializer
from worklog_core.iam.models import UserProfile
from worklog_core.iam.selectors import get_user, users_visible_to
from worklog_core.iam.services.provisioning import ProvisioningService
from worklog_core.iam.services.users import UserService
from worklog_core.projects.api.serializers import MembershipSerializer
from worklog_core.projects.selectors import memberships_for_user


@extend_schema_view(
    list=extend_schema(
        tags=["Users"],
        responses={200: UserSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="role", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="is_active", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Users"], responses={200: UserSerializer}),
    create=extend_schema(tags=["Users"], request=UserCreateSerializer, responses={201: UserSerializer}),
    update=extend_schema(tags=["Users"], request=UserUpdateSerializer, responses={200: UserSerializer}),
    partial_update=extend_schema(tags=["Users"], request=UserUpdateSerializer, responses={200: UserSerializer}),
    destroy=extend_schema(tags=["Users"], responses={200: OpenApiTypes.OBJECT}),
)
class UserViewSet(ScopedViewSet):
    """
    Users of the caller's organization.
    - admin/manager see everyone, other roles only themselves
    - DELETE deactivates (admin only)
    """
    policy_kind = Kind.USER
    policy_actions = {
        "me": Action.READ,
        "projects": Action.READ,
        "retry_provisioning": Action.RETRY_PROVISIONING,
    }
    serializer_class = UserSerializer
    queryset = UserProfile.objects.none()

    def list(self, request):
        qs = users_visible_to(
            self.caller,
            role=request.query_params.get("role") or None,
            is_active=bool_or_none(request.query_params.get("is_active"), "is_active"),
            search=request.query_params.get("search") or None,
        )
        return paginate(request, qs, UserSerializer)

    @extend_schema(tags=["Users"], responses={200: UserSerializer})
    @action(detail=False, methods=["get"], url_path="me")
    def me(self, request):
        return envelope(UserSerializer(get_user(self.caller, self.caller.profile_id)).data)

    def retrieve(self, request, pk=None):
        return envelope(UserSerializer(get_user(self.caller, self.parse_pk(pk))).data)

    def create(self, request):
        ser = UserCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        profile = UserService.create(
            caller=self.caller,
            email=data["email"],
            first_name=data["first_name"],
            last_name=data["last_name"],
            role=data["role"],
            password=data.get("password"),
            keycloak_id=data.get("keycloak_id") or None,
        )
        return created(UserSerializer(profile).data, message="User created successfully")

    def update(self, request, pk=None):
        profile = get_user(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, profile, owner_id=profile.id)

        ser = UserUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        if "role" in data and data["role"] != profile.role:
            self.authorize(Action.CHANGE_ROLE, profile)
        if "is_active" in data and data["is_active"] != profile.is_active:
            self.authorize(Action.DELETE, profile)
            if profile.id == self.caller.profile_id:
                raise ConflictError("You cannot deactivate your own account.", code="CANNOT_DELETE")

        profile = UserService.update(
            profile_id=profile.id,
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            role=data.get("role"),
            is_active=data.get("is_active"),
        )
        return envelope(UserSerializer(profile).data, message="User updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        profile = get_user(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, profile)

        UserService.deactivate(caller=self.caller, profile_id=profile.id)
        return deleted("User deactivated successfully")

    @extend_schema(tags=["Users"], responses={200: MembershipSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="projects")
    def projects(self, request, pk=None):
        profile = get_user(self.caller, self.parse_pk(pk))
        return paginate(request, memberships_for_user(profile), MembershipSerializer)

    @extend_schema(tags=["Users"], request=None, responses={200: UserSerializer})
    @action(detail=True, methods=["post"], url_path="retry_provisioning")
    def retry_provisioning(self, request, pk=None):
        profile = get_user(self.caller, self.parse_pk(pk))
        self.authorize(Action.RETRY_PROVISIONING, profile)

        profile = ProvisioningService.run(profile)
        return envelope(UserSerializer(profile).data, message=f"Provisioning status: {profile.idp_sync_status}")
