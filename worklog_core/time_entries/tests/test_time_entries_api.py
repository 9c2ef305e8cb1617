from decimal import Decimal

import pytest

from worklog_core.time_entries.models import TimeEntry
from worklog_core.tests.helpers import data, error_code


def _payload(project, **overrides):
    body = {
        "project_id": str(project.id),
        "entry_date": "2024-03-04",
        "duration_hours": "2.50",
        "task_description": "Implement login",
    }
    body.update(overrides)
    return body


@pytest.mark.django_db
def test_create_defaults_rate_from_project(employee_client, employee_profile, task_project, task_membership):
    resp = employee_client.post("/api/v1/time-entries/", _payload(task_project), format="json")

    assert resp.status_code == 201
    body = data(resp)
    assert body["status"] == "draft"
    assert body["user_id"] == str(employee_profile.id)
    assert body["hourly_rate"] == "100.00"


@pytest.mark.django_db
def test_membership_rate_overrides_project_rate(employee_client, task_project, task_membership):
    task_membership.hourly_rate = Decimal("120.00")
    task_membership.save()

    resp = employee_client.post("/api/v1/time-entries/", _payload(task_project), format="json")

    assert data(resp)["hourly_rate"] == "120.00"


@pytest.mark.django_db
def test_timesheet_project_rejects_time_entries(employee_client, timesheet_project, timesheet_membership):
    resp = employee_client.post("/api/v1/time-entries/", _payload(timesheet_project), format="json")

    assert resp.status_code == 409
    assert error_code(resp) == "BILLING_MODEL_MISMATCH"


@pytest.mark.django_db
def test_non_member_project_is_not_found(employee_client, task_project):
    resp = employee_client.post("/api/v1/time-entries/", _payload(task_project), format="json")

    assert resp.status_code == 404
    assert error_code(resp) == "PROJECT_NOT_FOUND"


@pytest.mark.django_db
@pytest.mark.parametrize("hours", ["0", "-1", "24.50"])
def test_duration_bounds(employee_client, task_project, task_membership, hours):
    resp = employee_client.post("/api/v1/time-entries/", _payload(task_project, duration_hours=hours), format="json")

    assert resp.status_code == 400


@pytest.mark.django_db
def test_client_role_cannot_log_time(client_role_client, task_project):
    resp = client_role_client.post("/api/v1/time-entries/", _payload(task_project), format="json")

    assert resp.status_code == 403


@pytest.mark.django_db
def test_review_lifecycle(employee_client, manager_client, manager_profile, task_project, task_membership):
    entry_id = data(employee_client.post("/api/v1/time-entries/", _payload(task_project), format="json"))["id"]
    base = f"/api/v1/time-entries/{entry_id}"

    resp = employee_client.post(f"{base}/submit/")
    assert resp.status_code == 200
    assert data(resp)["status"] == "submitted"
    assert data(resp)["submitted_at"] is not None

    # submitted entries are frozen
    resp = employee_client.patch(f"{base}/", {"duration_hours": "3.00"}, format="json")
    assert resp.status_code == 409
    assert error_code(resp) == "ENTRY_NOT_EDITABLE"

    resp = employee_client.post(f"{base}/approve/")
    assert resp.status_code == 403

    resp = manager_client.post(f"{base}/reject/", {"reason": "Split by task"}, format="json")
    assert resp.status_code == 200
    assert data(resp)["status"] == "rejected"
    assert data(resp)["rejection_reason"] == "Split by task"

    resp = employee_client.patch(f"{base}/", {"duration_hours": "1.75"}, format="json")
    assert resp.status_code == 200
    assert data(resp)["duration_hours"] == "1.75"

    resp = employee_client.post(f"{base}/submit/")
    assert data(resp)["status"] == "submitted"
    assert data(resp)["rejection_reason"] == ""

    resp = manager_client.post(f"{base}/approve/")
    assert resp.status_code == 200
    assert data(resp)["status"] == "approved"
    assert data(resp)["approved_by_id"] == str(manager_profile.id)

    resp = employee_client.delete(f"{base}/")
    assert resp.status_code == 409
    assert error_code(resp) == "ENTRY_NOT_DELETABLE"

    resp = manager_client.post(f"{base}/approve/")
    assert resp.status_code == 409
    assert error_code(resp) == "INVALID_STATUS"


@pytest.mark.django_db
def test_draft_cannot_be_approved(manager_client, org, task_project, employee_profile):
    entry = TimeEntry.objects.create(
        organization=org,
        project=task_project,
        user=employee_profile,
        entry_date="2024-03-05",
        duration_hours=Decimal("1.00"),
        task_description="x",
    )

    resp = manager_client.post(f"/api/v1/time-entries/{entry.id}/approve/")

    assert resp.status_code == 409
    assert error_code(resp) == "INVALID_STATUS"


@pytest.mark.django_db
def test_manager_cannot_submit_for_someone_else(manager_client, org, task_project, employee_profile):
    entry = TimeEntry.objects.create(
        organization=org,
        project=task_project,
        user=employee_profile,
        entry_date="2024-03-05",
        duration_hours=Decimal("1.00"),
        task_description="x",
    )

    resp = manager_client.post(f"/api/v1/time-entries/{entry.id}/submit/")

    assert resp.status_code == 403


@pytest.mark.django_db
def test_employees_only_see_their_own_entries(employee_client, manager_client, org, task_project, employee_profile, manager_profile):
    for profile in (employee_profile, manager_profile):
        TimeEntry.objects.create(
            organization=org,
            project=task_project,
            user=profile,
            entry_date="2024-03-05",
            duration_hours=Decimal("1.00"),
            task_description="x",
        )

    mine = data(employee_client.get(f"/api/v1/time-entries/?user_id={manager_profile.id}"))
    assert [e["user_id"] for e in mine] == [str(employee_profile.id)]

    everyone = data(manager_client.get("/api/v1/time-entries/"))
    assert len(everyone) == 2


@pytest.mark.django_db
def test_date_range_filter(employee_client, org, task_project, employee_profile):
    for day in ("2024-03-01", "2024-03-10", "2024-03-20"):
        TimeEntry.objects.create(
            organization=org,
            project=task_project,
            user=employee_profile,
            entry_date=day,
            duration_hours=Decimal("1.00"),
            task_description="x",
        )

    resp = employee_client.get("/api/v1/time-entries/?start_date=2024-03-05&end_date=2024-03-15")

    assert [e["entry_date"] for e in data(resp)] == ["2024-03-10"]
