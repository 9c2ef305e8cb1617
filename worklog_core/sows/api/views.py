# worklog_core/sows/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action

from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.policy import Action, Kind
from worklog_core.common.views import ScopedViewSet, uuid_or_none
from worklog_core.customers.selectors import get_customer
from worklog_core.sows.api.serializers import SOWSerializer, SOWStatsSerializer, SOWWriteSerializer
from worklog_core.sows.models import SOW
from worklog_core.sows.selectors import get_sow, sow_stats, sows_for
from worklog_core.sows.services import SOWService


@extend_schema_view(
    list=extend_schema(
        tags=["SOWs"],
        responses={200: SOWSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="customer_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["SOWs"], responses={200: SOWSerializer}),
    create=extend_schema(tags=["SOWs"], request=SOWWriteSerializer, responses={201: SOWSerializer}),
    update=extend_schema(tags=["SOWs"], request=SOWWriteSerializer, responses={200: SOWSerializer}),
    partial_update=extend_schema(tags=["SOWs"], request=SOWWriteSerializer, responses={200: SOWSerializer}),
    destroy=extend_schema(tags=["SOWs"], responses={200: OpenApiTypes.OBJECT}),
)
class SOWViewSet(ScopedViewSet):
    """
    Statements of work.
    DELETE cancels the SOW instead of removing the row.
    """
    policy_kind = Kind.SOW
    policy_actions = {"stats": Action.READ}
    serializer_class = SOWSerializer
    queryset = SOW.objects.none()

    def list(self, request):
        qs = sows_for(
            self.caller,
            customer_id=uuid_or_none(request.query_params.get("customer_id"), "customer_id"),
            status=request.query_params.get("status") or None,
        )
        return paginate(request, qs, SOWSerializer)

    def retrieve(self, request, pk=None):
        return envelope(SOWSerializer(get_sow(self.caller, self.parse_pk(pk))).data)

    def create(self, request):
        ser = SOWWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        customer = get_customer(self.caller, data.pop("customer_id"))
        sow = SOWService.create(organization_id=self.caller.organization_id, customer_id=customer.id, **data)
        return created(SOWSerializer(sow).data, message="SOW created successfully")

    def update(self, request, pk=None):
        sow = get_sow(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, sow)

        ser = SOWWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)
        data = dict(ser.validated_data)

        if "customer_id" in data:
            data["customer_id"] = get_customer(self.caller, data["customer_id"]).id

        sow = SOWService.update(sow_id=sow.id, **data)
        return envelope(SOWSerializer(sow).data, message="SOW updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        sow = get_sow(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, sow)

        SOWService.cancel(sow_id=sow.id)
        return deleted("SOW cancelled successfully")

    @extend_schema(tags=["SOWs"], responses={200: SOWStatsSerializer})
    @action(detail=True, methods=["get"], url_path="stats")
    def stats(self, request, pk=None):
        sow = get_sow(self.caller, self.parse_pk(pk))
        return envelope(SOWStatsSerializer(sow_stats(sow)).data)
