# worklog_core/timesheets/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action

from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.api.serializers import RejectSerializer
from worklog_core.common.policy import Action, Kind, forbidden
from worklog_core.common.views import ScopedViewSet, date_or_none, uuid_or_none
from worklog_core.iam.selectors import get_org_user
from worklog_core.projects.selectors import get_project
from worklog_core.timesheets.api.serializers import (
    TimesheetCreateSerializer,
    TimesheetEntrySerializer,
    TimesheetEntryWriteSerializer,
    TimesheetListSerializer,
    TimesheetSerializer,
    TimesheetUpdateSerializer,
)
from worklog_core.timesheets.models import WEEKDAY_FIELDS, Timesheet
from worklog_core.timesheets.selectors import get_timesheet, get_timesheet_entry, timesheets_visible_to
from worklog_core.timesheets.services import TimesheetService


@extend_schema_view(
    list=extend_schema(
        tags=["Timesheets"],
        responses={200: TimesheetListSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="user_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="week_start", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="week_end", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Timesheets"], responses={200: TimesheetSerializer}),
    create=extend_schema(tags=["Timesheets"], request=TimesheetCreateSerializer, responses={201: TimesheetSerializer}),
    update=extend_schema(tags=["Timesheets"], request=TimesheetUpdateSerializer, responses={200: TimesheetSerializer}),
    partial_update=extend_schema(tags=["Timesheets"], request=TimesheetUpdateSerializer, responses={200: TimesheetSerializer}),
    destroy=extend_schema(tags=["Timesheets"], responses={200: OpenApiTypes.OBJECT}),
)
class TimesheetViewSet(ScopedViewSet):
    policy_kind = Kind.TIMESHEET
    policy_actions = {
        "submit": Action.SUBMIT,
        "approve": Action.APPROVE,
        "reject": Action.REJECT,
    }
    serializer_class = TimesheetSerializer
    queryset = Timesheet.objects.none()

    def list(self, request):
        qp = request.query_params
        qs = timesheets_visible_to(
            self.caller,
            user_id=uuid_or_none(qp.get("user_id"), "user_id"),
            status=qp.get("status") or None,
            week_start=date_or_none(qp.get("week_start"), "week_start"),
            week_end=date_or_none(qp.get("week_end"), "week_end"),
        )
        return paginate(request, qs, TimesheetListSerializer)

    def retrieve(self, request, pk=None):
        return envelope(TimesheetSerializer(get_timesheet(self.caller, self.parse_pk(pk))).data)

    def create(self, request):
        ser = TimesheetCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        owner_id = data.get("user_id") or self.caller.profile_id
        if owner_id != self.caller.profile_id and not self.caller.is_manager:
            raise forbidden("Only admins and managers can create timesheets for other users.")
        owner = get_org_user(self.caller.organization_id, owner_id)

        ts = TimesheetService.create(
            organization_id=self.caller.organization_id,
            user=owner,
            week_start_date=data["week_start_date"],
            week_end_date=data.get("week_end_date"),
            notes=data.get("notes", ""),
        )
        return created(TimesheetSerializer(ts).data, message="Timesheet created successfully")

    def update(self, request, pk=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, ts, owner_id=ts.user_id)

        ser = TimesheetUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        TimesheetService.update(timesheet_id=ts.id, notes=ser.validated_data.get("notes"))
        ts = get_timesheet(self.caller, ts.id)
        return envelope(TimesheetSerializer(ts).data, message="Timesheet updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, ts, owner_id=ts.user_id)

        TimesheetService.delete(timesheet_id=ts.id)
        return deleted("Timesheet deleted successfully")

    # ---- entries ----

    @extend_schema(tags=["Timesheets"], request=TimesheetEntryWriteSerializer, responses={201: TimesheetEntrySerializer})
    @action(detail=True, methods=["post"], url_path="entries")
    def entries(self, request, pk=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, ts, owner_id=ts.user_id)

        ser = TimesheetEntryWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        # project resolved in the caller's view; the service re-checks it for the timesheet owner
        entry = TimesheetService.add_entry(
            timesheet_id=ts.id,
            project=get_project(self.caller, data["project_id"]),
            task_description=data.get("task_description", ""),
            hours={f: data[f] for f in WEEKDAY_FIELDS if f in data},
        )
        return created(TimesheetEntrySerializer(entry).data, message="Timesheet entry added successfully")

    @extend_schema(
        tags=["Timesheets"],
        methods=["PUT"],
        request=TimesheetEntryWriteSerializer,
        responses={200: TimesheetEntrySerializer},
    )
    @extend_schema(tags=["Timesheets"], methods=["DELETE"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["put", "delete"], url_path=r"entries/(?P<entry_id>[^/.]+)")
    def entry_detail(self, request, pk=None, entry_id=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, ts, owner_id=ts.user_id)
        entry = get_timesheet_entry(ts, self.parse_pk(entry_id, kind=Kind.TIMESHEET_ENTRY))

        if request.method == "DELETE":
            TimesheetService.remove_entry(timesheet_id=ts.id, entry_id=entry.id)
            return deleted("Timesheet entry deleted successfully")

        ser = TimesheetEntryWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        entry = TimesheetService.update_entry(
            timesheet_id=ts.id,
            entry_id=entry.id,
            project=get_project(self.caller, data["project_id"]) if "project_id" in data else None,
            task_description=data.get("task_description"),
            hours={f: data[f] for f in WEEKDAY_FIELDS if f in data},
        )
        return envelope(TimesheetEntrySerializer(entry).data, message="Timesheet entry updated successfully")

    # ---- workflow ----

    @extend_schema(tags=["Timesheets"], request=None, responses={200: TimesheetSerializer})
    @action(detail=True, methods=["post"], url_path="submit")
    def submit(self, request, pk=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.SUBMIT, ts, owner_id=ts.user_id)

        TimesheetService.submit(timesheet_id=ts.id)
        return envelope(TimesheetSerializer(get_timesheet(self.caller, ts.id)).data, message="Timesheet submitted successfully")

    @extend_schema(tags=["Timesheets"], request=None, responses={200: TimesheetSerializer})
    @action(detail=True, methods=["post"], url_path="approve")
    def approve(self, request, pk=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.APPROVE, ts)

        TimesheetService.approve(timesheet_id=ts.id, approver_id=self.caller.profile_id)
        return envelope(TimesheetSerializer(get_timesheet(self.caller, ts.id)).data, message="Timesheet approved successfully")

    @extend_schema(tags=["Timesheets"], request=RejectSerializer, responses={200: TimesheetSerializer})
    @action(detail=True, methods=["post"], url_path="reject")
    def reject(self, request, pk=None):
        ts = get_timesheet(self.caller, self.parse_pk(pk))
        self.authorize(Action.REJECT, ts)

        ser = RejectSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        TimesheetService.reject(timesheet_id=ts.id, reason=ser.validated_data["reason"])
        return envelope(TimesheetSerializer(get_timesheet(self.caller, ts.id)).data, message="Timesheet rejected")
