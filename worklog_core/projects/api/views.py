# worklog_core/projects/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action

from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.policy import Action, Kind
from worklog_core.common.views import ScopedViewSet, uuid_or_none
from worklog_core.customers.selectors import get_customer
from worklog_core.iam.selectors import get_org_user
from worklog_core.projects.api.serializers import (
    MembershipCreateSerializer,
    MembershipSerializer,
    MembershipUpdateSerializer,
    ProjectSerializer,
    ProjectWriteSerializer,
)
from worklog_core.projects.models import Project, ProjectMembership
from worklog_core.projects.selectors import active_memberships, get_membership, get_project, projects_visible_to
from worklog_core.projects.services import MembershipService, ProjectService
from worklog_core.sows.selectors import get_sow


@extend_schema_view(
    list=extend_schema(
        tags=["Projects"],
        responses={200: ProjectSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="customer_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="billing_model", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Projects"], responses={200: ProjectSerializer}),
    create=extend_schema(tags=["Projects"], request=ProjectWriteSerializer, responses={201: ProjectSerializer}),
    update=extend_schema(tags=["Projects"], request=ProjectWriteSerializer, responses={200: ProjectSerializer}),
    partial_update=extend_schema(tags=["Projects"], request=ProjectWriteSerializer, responses={200: ProjectSerializer}),
)
class ProjectViewSet(ScopedViewSet):
    """
    Projects visible to the caller.
    Employees only see active projects they are an active member of;
    anything else is reported as not found.
    """
    policy_kind = Kind.PROJECT
    policy_actions = {"members": Action.READ}
    serializer_class = ProjectSerializer
    queryset = Project.objects.none()

    def list(self, request):
        qs = projects_visible_to(
            self.caller,
            customer_id=uuid_or_none(request.query_params.get("customer_id"), "customer_id"),
            status=request.query_params.get("status") or None,
            billing_model=request.query_params.get("billing_model") or None,
            search=request.query_params.get("search") or None,
        )
        return paginate(request, qs, ProjectSerializer)

    def retrieve(self, request, pk=None):
        return envelope(ProjectSerializer(get_project(self.caller, self.parse_pk(pk))).data)

    def _resolve_relations(self, data: dict) -> dict:
        if "customer_id" in data:
            data["customer"] = get_customer(self.caller, data.pop("customer_id"))
        if "sow_id" in data:
            sow_id = data.pop("sow_id")
            data["sow"] = get_sow(self.caller, sow_id) if sow_id else None
        return data

    def create(self, request):
        ser = ProjectWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = self._resolve_relations(dict(ser.validated_data))

        project = ProjectService.create(organization_id=self.caller.organization_id, **data)
        return created(ProjectSerializer(project).data, message="Project created successfully")

    def update(self, request, pk=None):
        project = get_project(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, project)

        ser = ProjectWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = self._resolve_relations(dict(ser.validated_data))

        project = ProjectService.update(project_id=project.id, **data)
        return envelope(ProjectSerializer(project).data, message="Project updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    @extend_schema(
        tags=["Projects"],
        methods=["GET"],
        responses={200: MembershipSerializer(many=True)},
    )
    @extend_schema(
        tags=["Projects"],
        methods=["POST"],
        request=MembershipCreateSerializer,
        responses={201: MembershipSerializer},
    )
    @action(detail=True, methods=["get", "post"], url_path="members")
    def members(self, request, pk=None):
        project = get_project(self.caller, self.parse_pk(pk))

        if request.method == "GET":
            return paginate(request, active_memberships(project), MembershipSerializer)

        self.authorize(Action.MANAGE_MEMBERS, project)

        ser = MembershipCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        user = get_org_user(self.caller.organization_id, ser.validated_data["user_id"])

        membership = MembershipService.add(
            project=project,
            user_id=user.id,
            role=ser.validated_data.get("role"),
            hourly_rate=ser.validated_data.get("hourly_rate"),
        )
        return created(MembershipSerializer(membership).data, message="Member added successfully")


@extend_schema_view(
    update=extend_schema(tags=["Projects"], request=MembershipUpdateSerializer, responses={200: MembershipSerializer}),
    partial_update=extend_schema(tags=["Projects"], request=MembershipUpdateSerializer, responses={200: MembershipSerializer}),
    destroy=extend_schema(tags=["Projects"], responses={200: OpenApiTypes.OBJECT}),
)
class MembershipViewSet(ScopedViewSet):
    policy_kind = Kind.MEMBERSHIP
    serializer_class = MembershipSerializer
    queryset = ProjectMembership.objects.none()

    def update(self, request, pk=None):
        membership = get_membership(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, membership)

        ser = MembershipUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        membership = MembershipService.update(
            membership_id=membership.id,
            role=data.get("role"),
            hourly_rate=data.get("hourly_rate"),
            is_active=data.get("is_active"),
            clear_rate="hourly_rate" in data and data["hourly_rate"] is None,
        )
        return envelope(MembershipSerializer(membership).data, message="Membership updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        membership = get_membership(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, membership)

        MembershipService.remove(membership_id=membership.id)
        return deleted("Member removed successfully")
