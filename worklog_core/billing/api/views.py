# worklog_core/billing/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.views import APIView

from worklog_core.billing.api.serializers import (
    BillingBatchCreateSerializer,
    BillingBatchDetailSerializer,
    BillingBatchSerializer,
    BillingBatchUpdateSerializer,
    BillingItemsAddSerializer,
    BillingItemSerializer,
    BillingStatsSerializer,
)
from worklog_core.billing.models import BillingBatch
from worklog_core.billing.selectors import batches_for, billing_stats, get_batch
from worklog_core.billing.services import BillingService
from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.permissions import PolicyPermission
from worklog_core.common.policy import Action, Kind
from worklog_core.common.scope import resolve_caller
from worklog_core.common.views import ScopedViewSet, date_or_none, uuid_or_none
from worklog_core.projects.selectors import get_project


def _items_payload(data):
    """POST .../items/ accepts {"items": [...]}, a bare list, or a single item object."""
    if isinstance(data, list):
        return {"items": data}
    if isinstance(data, dict) and "items" in data:
        return data
    return {"items": [data]}


@extend_schema_view(
    list=extend_schema(
        tags=["Billing"],
        responses={200: BillingBatchSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="project_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Billing"], responses={200: BillingBatchDetailSerializer}),
    create=extend_schema(tags=["Billing"], request=BillingBatchCreateSerializer, responses={201: BillingBatchDetailSerializer}),
    update=extend_schema(tags=["Billing"], request=BillingBatchUpdateSerializer, responses={200: BillingBatchSerializer}),
    partial_update=extend_schema(tags=["Billing"], request=BillingBatchUpdateSerializer, responses={200: BillingBatchSerializer}),
    destroy=extend_schema(tags=["Billing"], responses={200: OpenApiTypes.OBJECT}),
)
class BillingBatchViewSet(ScopedViewSet):
    """
    Billing batches:
    - CRUD (delete only while draft)
    - items: add (manual / from time entry / from timesheet), remove
    - send (draft -> sent), mark_paid (sent -> paid)
    """
    policy_kind = Kind.BILLING_BATCH
    policy_actions = {
        "items": Action.MANAGE_ITEMS,
        "remove_item": Action.MANAGE_ITEMS,
        "send": Action.TRANSITION,
        "mark_paid": Action.TRANSITION,
    }
    serializer_class = BillingBatchSerializer
    queryset = BillingBatch.objects.none()

    def list(self, request):
        qs = batches_for(
            self.caller,
            status=request.query_params.get("status") or None,
            project_id=uuid_or_none(request.query_params.get("project_id"), "project_id"),
        )
        return paginate(request, qs, BillingBatchSerializer)

    def retrieve(self, request, pk=None):
        return envelope(BillingBatchDetailSerializer(get_batch(self.caller, self.parse_pk(pk))).data)

    def create(self, request):
        ser = BillingBatchCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        project_id = data.pop("project_id", None)
        project = get_project(self.caller, project_id) if project_id else None

        batch = BillingService.create_batch(
            organization_id=self.caller.organization_id,
            created_by_id=self.caller.profile_id,
            project=project,
            **data,
        )
        batch = get_batch(self.caller, batch.id)
        return created(BillingBatchDetailSerializer(batch).data, message="Billing batch created successfully")

    def update(self, request, pk=None):
        batch = get_batch(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, batch)

        ser = BillingBatchUpdateSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        batch = BillingService.update_batch(batch_id=batch.id, **ser.validated_data)
        return envelope(BillingBatchSerializer(batch).data, message="Billing batch updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        batch = get_batch(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, batch)

        BillingService.delete_batch(batch_id=batch.id)
        return deleted("Billing batch deleted successfully")

    @extend_schema(tags=["Billing"], request=BillingItemsAddSerializer, responses={201: BillingItemSerializer(many=True)})
    @action(detail=True, methods=["post"], url_path="items")
    def items(self, request, pk=None):
        batch = get_batch(self.caller, self.parse_pk(pk))
        self.authorize(Action.MANAGE_ITEMS, batch)

        ser = BillingItemsAddSerializer(data=_items_payload(request.data))
        ser.is_valid(raise_exception=True)

        items = BillingService.add_items(batch_id=batch.id, items=ser.validated_data["items"])
        return created(BillingItemSerializer(items, many=True).data, message="Billing items added successfully")

    @extend_schema(tags=["Billing"], request=None, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["delete"], url_path=r"items/(?P<item_id>[^/.]+)")
    def remove_item(self, request, pk=None, item_id=None):
        batch = get_batch(self.caller, self.parse_pk(pk))
        self.authorize(Action.MANAGE_ITEMS, batch)

        BillingService.remove_item(batch_id=batch.id, item_id=self.parse_pk(item_id, kind=Kind.BILLING_ITEM))
        return deleted("Billing item deleted successfully")

    @extend_schema(tags=["Billing"], request=None, responses={200: BillingBatchSerializer})
    @action(detail=True, methods=["post"], url_path="send")
    def send(self, request, pk=None):
        batch = get_batch(self.caller, self.parse_pk(pk))
        self.authorize(Action.TRANSITION, batch)

        batch = BillingService.send(batch_id=batch.id)
        return envelope(BillingBatchSerializer(batch).data, message="Billing batch sent")

    @extend_schema(tags=["Billing"], request=None, responses={200: BillingBatchSerializer})
    @action(detail=True, methods=["post"], url_path="mark_paid")
    def mark_paid(self, request, pk=None):
        batch = get_batch(self.caller, self.parse_pk(pk))
        self.authorize(Action.TRANSITION, batch)

        batch = BillingService.mark_paid(batch_id=batch.id)
        return envelope(BillingBatchSerializer(batch).data, message="Billing batch marked as paid")


class BillingStatsView(APIView):
    """Aggregates over the caller's batches, recomputed per request."""
    permission_classes = [IsAuthenticated, PolicyPermission]
    policy_kind = Kind.BILLING_BATCH
    policy_actions = {"stats": Action.LIST}
    action = "stats"

    @extend_schema(
        tags=["Billing"],
        responses={200: BillingStatsSerializer},
        parameters=[
            OpenApiParameter(name="project_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="start_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="end_date", type=OpenApiTypes.DATE, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def get(self, request):
        caller = resolve_caller(request)
        qp = request.query_params
        stats = billing_stats(
            caller,
            project_id=uuid_or_none(qp.get("project_id"), "project_id"),
            start_date=date_or_none(qp.get("start_date"), "start_date"),
            end_date=date_or_none(qp.get("end_date"), "end_date"),
        )
        return envelope(BillingStatsSerializer(stats).data)
