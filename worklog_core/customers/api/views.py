# worklog_core/customers/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema, extend_schema_view
from rest_framework.decorators import action

from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import created, deleted, envelope
from worklog_core.common.policy import Action, Kind
from worklog_core.common.views import ScopedViewSet, bool_or_none
from worklog_core.customers.api.serializers import CustomerSerializer, CustomerStatsSerializer, CustomerWriteSerializer
from worklog_core.customers.models import Customer
from worklog_core.customers.selectors import customer_stats, customers_for, get_customer
from worklog_core.customers.services import CustomerService


@extend_schema_view(
    list=extend_schema(
        tags=["Customers"],
        responses={200: CustomerSerializer(many=True)},
        parameters=[
            OpenApiParameter(name="is_active", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    ),
    retrieve=extend_schema(tags=["Customers"], responses={200: CustomerSerializer}),
    create=extend_schema(tags=["Customers"], request=CustomerWriteSerializer, responses={201: CustomerSerializer}),
    update=extend_schema(tags=["Customers"], request=CustomerWriteSerializer, responses={200: CustomerSerializer}),
    partial_update=extend_schema(tags=["Customers"], request=CustomerWriteSerializer, responses={200: CustomerSerializer}),
    destroy=extend_schema(tags=["Customers"], responses={200: OpenApiTypes.OBJECT}),
)
class CustomerViewSet(ScopedViewSet):
    policy_kind = Kind.CUSTOMER
    policy_actions = {"stats": Action.READ}
    serializer_class = CustomerSerializer
    queryset = Customer.objects.none()

    def list(self, request):
        qs = customers_for(
            self.caller,
            is_active=bool_or_none(request.query_params.get("is_active"), "is_active"),
            search=request.query_params.get("search") or None,
        )
        return paginate(request, qs, CustomerSerializer)

    def retrieve(self, request, pk=None):
        return envelope(CustomerSerializer(get_customer(self.caller, self.parse_pk(pk))).data)

    def create(self, request):
        ser = CustomerWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        customer = CustomerService.create(
            organization_id=self.caller.organization_id,
            name=data["name"],
            email=data.get("email", ""),
            phone=data.get("phone", ""),
            address=data.get("address"),
            billing_settings=data.get("billing_settings"),
        )
        return created(CustomerSerializer(customer).data, message="Customer created successfully")

    def update(self, request, pk=None):
        customer = get_customer(self.caller, self.parse_pk(pk))
        self.authorize(Action.UPDATE, customer)

        ser = CustomerWriteSerializer(data=request.data, partial=True)
        ser.is_valid(raise_exception=True)

        customer = CustomerService.update(customer_id=customer.id, **ser.validated_data)
        return envelope(CustomerSerializer(customer).data, message="Customer updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)

    def destroy(self, request, pk=None):
        customer = get_customer(self.caller, self.parse_pk(pk))
        self.authorize(Action.DELETE, customer)

        CustomerService.deactivate(customer_id=customer.id)
        return deleted("Customer deleted successfully")

    @extend_schema(tags=["Customers"], responses={200: CustomerStatsSerializer})
    @action(detail=True, methods=["get"], url_path="stats")
    def stats(self, request, pk=None):
        customer = get_customer(self.caller, self.parse_pk(pk))
        return envelope(CustomerStatsSerializer(customer_stats(customer)).data)
