# worklog_core/time_entries/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action

from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.api.serializers import RejectSerializer
from worklog_core.common.policy import Action, Kind
from worklog_core.common.views import ScopedViewSet, date_or_none, uuid_or_none
from worklog_core.projects.selectors import get_project
from worklog_core.time_entries.api.serializers import TimeEntrySerializer, TimeEntryWriteSerializer
from worklog_core.time_entries.models import TimeEntry
from worklog_core.time_entries.selectors import get_time_entry, time_entries_visible_to
from worklog_core.time_entries.services import TimeEntryService


@extend_schema_view(
    list=extend_schema(
        tags=["Time entries"],
        responses={200: TimeEntrySerializer(many=True)},
        parameters=[
            OpenApiParameter(name="user_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="project_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="start_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Time entries"], responses={200: TimeEntrySerializer}),
    create=extend_schema(tags=["Time entries"], request=TimeEntryWriteSerializer, responses={201: TimeEntrySerializer}),
    update=extend_schema(tags=["Time entries"], request=TimeEntryWriteSerializer, responses={200: TimeEntrySerializer}),
    partial_update=extend_schema(tags=["Time entries"], request=TimeEntryWriteSerializer, responses={200: TimeEntrySerializer}),
    destroy=extend_schema(tags=["Time entries"], responses={200: OpenApiTypes.OBJECT}),
)
class TimeEntryViewSet(ScopedViewSet):
    """
    Time entries of the caller (employees) or of the whole organization
    (admin/manager), with the submit/approve/reject workflow.
    """
    policy_kind = Kind.TIME_ENTRY
    policy_actions = {
        "submit": Action.SUBMIT,
        "approve": Action.APPROVE,
        "reject": Action.REJECT,
    }
    serializer_class = TimeEntrySerializer
    queryset = TimeEntry.objects.none()

    def list(self, request):
        qp = request.query_params
        qs = time_entries_visible_to(
            self.caller,
            user_id=uuid_or_none(qp.get("user_id"), "user_id"),
            project_id=uuid_or_none(qp.get("project_id"), "project_id"),
            status=qp.get("status") or None,
            start_date=date_or_none(qp.get("start_date"), "start_date"),
            end_date=date_or_none(qp.get("end_date"), "end_date"),
        )
        return paginate(request, qs, TimeEntrySerializer)

    def retrieve(self, request, pk=None):
        return envelope(TimeEntrySerializer(get_time_entry(self.caller, self.parse_pk(pk))).data)

    def create(self, request):
        ser = TimeEntryWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        project = get_project(self.caller, data.pop("project_id"))
        entry = TimeEntryService.create(
            organization_id=self.caller.organization_id,
            user_id=self.caller.profile_id,
            project=project,
            **data,
        )
        return created(TimeEntrySerializer(entry).data, message="Time entry created successfully")

    def update(self, request, pk=None):
        entry = get_time_entry(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, entry, owner_id=entry.user_id)

        ser = TimeEntryWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        if "project_id" in data:
            data["project"] = get_project(self.caller, data.pop("project_id"))

        entry = TimeEntryService.update(entry_id=entry.id, **data)
        return envelope(TimeEntrySerializer(entry).data, message="Time entry updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        entry = get_time_entry(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, entry, owner_id=entry.user_id)

        TimeEntryService.delete(entry_id=entry.id)
        return deleted("Time entry deleted successfully")

    @extend_schema(tags=["Time entries"], request=None, responses={200: TimeEntrySerializer})
    @action(detail=True, methods=["post"], url_path="submit")
    def submit(self, request, pk=None):
        entry = get_time_entry(self.caller, self.parse_pk(pk))
        self.authorize(Action.SUBMIT, entry, owner_id=entry.user_id)

        entry = TimeEntryService.submit(entry_id=entry.id)
        return envelope(TimeEntrySerializer(entry).data, message="Time entry submitted successfully")

    @extend_schema(tags=["Time entries"], request=None, responses={200: TimeEntrySerializer})
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        entry = get_time_entry(self.caller, self.parse_pk(pk))
        self.authorize(Action.APPROVE, entry)

        entry = TimeEntryService.approve(entry_id=entry.id, approver_id=self.caller.profile_id)
        return envelope(TimeEntrySerializer(entry).data, message="Time entry approved successfully")

    @extend_schema(tags=["Time entries"], request=RejectSerializer, responses={200: TimeEntrySerializer})
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        entry = get_time_entry(self.caller, self.parse_pk(pk))
        self.authorize(Action.REJECT, entry)

        ser = RejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        entry = TimeEntryService.reject(entry_id=entry.id, reason=ser.validated_data["reason"])
        return envelope(TimeEntrySerializer(entry).data, message="Time entry rejected")
