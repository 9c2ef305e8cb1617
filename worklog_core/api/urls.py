# worklog_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from worklog_core.billing.api.views import BillingBatchViewSet, BillingStatsView
from worklog_core.customers.api.views import CustomerViewSet
from worklog_core.iam.api.views import UserViewSet
from worklog_core.organizations.api.views import OrganizationViewSet
from worklog_core.projects.api.views import MembershipViewSet, ProjectViewSet
from worklog_core.sows.api.views import SOWViewSet
from worklog_core.time_entries.api.views import TimeEntryViewSet
from worklog_core.timesheets.api.views import TimesheetViewSet

router = DefaultRouter()

router.register(r"organizations", OrganizationViewSet, basename="organizations")
router.register(r"users", UserViewSet, basename="users")
router.register(r"customers", CustomerViewSet, basename="customers")
router.register(r"sows", SOWViewSet, basename="sows")
router.register(r"projects", ProjectViewSet, basename="projects")
router.register(r"memberships", MembershipViewSet, basename="memberships")
router.register(r"time-entries", TimeEntryViewSet, basename="time-entries")
router.register(r"timesheets", TimesheetViewSet, basename="timesheets")
router.register(r"billing/batches", BillingBatchViewSet, basename="billing-batches")

urlpatterns = [
    # non-ViewSet endpoint, declared before the router so it is not shadowed
    path("billing/stats/", BillingStatsView.as_view(), name="billing-stats"),
    path("", include(router.urls)),
]
