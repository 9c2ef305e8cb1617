from decimal import Decimal

import pytest

from worklog_core.billing.models import BatchStatus, BillingBatch
from worklog_core.projects.models import ProjectStatus
from worklog_core.common.workflow import ApprovalStatus
from worklog_core.time_entries.models import TimeEntry
from worklog_core.timesheets.models import Timesheet, TimesheetEntry
from worklog_core.tests.helpers import data, error_code


@pytest.mark.django_db
def test_create_applies_default_billing_settings(manager_client, org):
    resp = manager_client.post(
        "/api/v1/customers/",
        {"name": "  Hooli ", "email": "billing@hooli.test", "address": {"city": "Palo Alto"}},
        format="json",
    )

    assert resp.status_code == 201
    body = data(resp)
    assert body["name"] == "Hooli"
    assert body["organization_id"] == str(org.id)
    assert body["billing_settings"] == {"currency": "USD", "payment_terms": "Net 30"}
    assert body["address"] == {"city": "Palo Alto"}


@pytest.mark.django_db
def test_employee_cannot_create(employee_client):
    resp = employee_client.post("/api/v1/customers/", {"name": "Nope"}, format="json")

    assert resp.status_code == 403


@pytest.mark.django_db
def test_update_merges_billing_settings(manager_client, customer):
    resp = manager_client.patch(
        f"/api/v1/customers/{customer.id}/",
        {"billing_settings": {"payment_terms": "Net 15"}},
        format="json",
    )

    assert resp.status_code == 200
    assert data(resp)["billing_settings"] == {"currency": "USD", "payment_terms": "Net 15"}


@pytest.mark.django_db
def test_search_and_active_filter(admin_client, org, customer):
    customer.is_active = False
    customer.save()

    assert data(admin_client.get("/api/v1/customers/?search=initech")) != []
    assert data(admin_client.get("/api/v1/customers/?is_active=true")) == []


@pytest.mark.django_db
def test_delete_blocked_by_active_project(admin_client, customer, task_project):
    resp = admin_client.delete(f"/api/v1/customers/{customer.id}/")

    assert resp.status_code == 409
    assert error_code(resp) == "CUSTOMER_HAS_ACTIVE_PROJECTS"


@pytest.mark.django_db
def test_delete_deactivates_when_projects_closed(admin_client, customer, task_project):
    task_project.status = ProjectStatus.COMPLETED
    task_project.save()

    resp = admin_client.delete(f"/api/v1/customers/{customer.id}/")

    assert resp.status_code == 200
    customer.refresh_from_db()
    assert customer.is_active is False


@pytest.mark.django_db
def test_manager_cannot_delete(manager_client, customer):
    resp = manager_client.delete(f"/api/v1/customers/{customer.id}/")

    assert resp.status_code == 403


@pytest.mark.django_db
def test_stats(admin_client, org, customer, task_project, employee_profile):
    for hours, billable in (("3.00", True), ("1.50", False)):
        TimeEntry.objects.create(
            organization=org,
            project=task_project,
            user=employee_profile,
            entry_date="2024-03-04",
            duration_hours=Decimal(hours),
            task_description="work",
            is_billable=billable,
        )
    BillingBatch.objects.create(
        organization=org,
        project=task_project,
        batch_name="March",
        status=BatchStatus.SENT,
        total_amount=Decimal("300.00"),
    )
    BillingBatch.objects.create(
        organization=org,
        project=task_project,
        batch_name="Draft",
        total_amount=Decimal("999.00"),
    )

    resp = admin_client.get(f"/api/v1/customers/{customer.id}/stats/")

    assert resp.status_code == 200
    body = data(resp)
    assert body["projects"] == {"total": 1, "active": 1}
    assert body["sows"] == {"total": 0, "active": 0}
    assert body["total_hours"] == "4.50"
    assert body["billable_hours"] == "3.00"
    assert body["total_billed"] == "300.00"


@pytest.mark.django_db
def test_stats_count_timesheet_hours(admin_client, org, customer, timesheet_project, employee_profile, manager_profile):
    for owner, status, hours in (
        (employee_profile, ApprovalStatus.APPROVED, "8.00"),
        (manager_profile, ApprovalStatus.DRAFT, "5.00"),
    ):
        ts = Timesheet.objects.create(
            organization=org,
            user=owner,
            week_start_date="2024-03-04",
            week_end_date="2024-03-10",
            status=status,
            total_hours=Decimal(hours),
        )
        TimesheetEntry.objects.create(
            organization=org,
            timesheet=ts,
            project=timesheet_project,
            hours_monday=Decimal(hours),
            total_hours=Decimal(hours),
        )

    body = data(admin_client.get(f"/api/v1/customers/{customer.id}/stats/"))

    assert body["total_hours"] == "8.00"
    assert body["billable_hours"] == "8.00"
