# worklog_core/organizations/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema, extend_schema_view

from worklog_core.common.api.pagination import paginate
from worklog_core.common.api.responses import envelope
from worklog_core.common.policy import Action, Kind, Resource, authorize
from worklog_core.common.views import ScopedViewSet
from worklog_core.organizations.api.serializers import OrganizationSerializer, OrganizationUpdateSerializer
from worklog_core.organizations.models import Organization
from worklog_core.organizations.selectors import get_organization, organizations_for
from worklog_core.organizations.services import OrganizationService


@extend_schema_view(
    list=extend_schema(tags=["Organizations"], responses={200: OrganizationSerializer(many=True)}),
    retrieve=extend_schema(tags=["Organizations"], responses={200: OrganizationSerializer}),
    update=extend_schema(tags=["Organizations"], request=OrganizationUpdateSerializer, responses={200: OrganizationSerializer}),
    partial_update=extend_schema(tags=["Organizations"], request=OrganizationUpdateSerializer, responses={200: OrganizationSerializer}),
)
class OrganizationViewSet(ScopedViewSet):
    """
    A caller sees and edits only their own organization.
    Any other id is reported as not found.
    """
    policy_kind = Kind.ORGANIZATION
    serializer_class = OrganizationSerializer
    queryset = Organization.objects.none()

    def list(self, request):
        return paginate(request, organizations_for(self.caller), OrganizationSerializer)

    def retrieve(self, request, pk=None):
        org = get_organization(self.caller, self.parse_pk(pk))
        return envelope(OrganizationSerializer(org).data)

    def update(self, request, pk=None):
        org = get_organization(self.caller, self.parse_pk(pk))
        authorize(self.caller, Action.UPDATE, Resource(kind=Kind.ORGANIZATION, organization_id=org.id))

        ser = OrganizationUpdateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        org = OrganizationService.update(
            organization_id=org.id,
            name=ser.validated_data.get("name"),
            domain=ser.validated_data.get("domain"),
            settings=ser.validated_data.get("settings"),
        )
        return envelope(OrganizationSerializer(org).data, message="Organization updated successfully")

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk)
