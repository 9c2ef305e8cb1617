import pytest

from worklog_core.common.workflow import ApprovalStatus
from worklog_core.timesheets.models import Timesheet
from worklog_core.tests.helpers import data, error_code


@pytest.fixture
def timesheet(employee_client, timesheet_membership):
    resp = employee_client.post("/api/v1/timesheets/", {"week_start_date": "2024-03-04"}, format="json")
    assert resp.status_code == 201
    return data(resp)


@pytest.mark.django_db
def test_create_defaults_week_end(timesheet, employee_profile):
    assert timesheet["week_end_date"] == "2024-03-10"
    assert timesheet["user_id"] == str(employee_profile.id)
    assert timesheet["total_hours"] == "0.00"
    assert timesheet["status"] == "draft"


@pytest.mark.django_db
def test_one_timesheet_per_week(employee_client, timesheet):
    resp = employee_client.post("/api/v1/timesheets/", {"week_start_date": "2024-03-04"}, format="json")

    assert resp.status_code == 409
    assert error_code(resp) == "TIMESHEET_EXISTS"


@pytest.mark.django_db
def test_week_longer_than_seven_days_is_rejected(employee_client):
    resp = employee_client.post(
        "/api/v1/timesheets/",
        {"week_start_date": "2024-03-04", "week_end_date": "2024-03-12"},
        format="json",
    )

    assert resp.status_code == 400


@pytest.mark.django_db
def test_employee_cannot_create_for_someone_else(employee_client, manager_profile):
    resp = employee_client.post(
        "/api/v1/timesheets/",
        {"user_id": str(manager_profile.id), "week_start_date": "2024-03-04"},
        format="json",
    )

    assert resp.status_code == 403


@pytest.mark.django_db
def test_manager_creates_for_employee(manager_client, employee_profile):
    resp = manager_client.post(
        "/api/v1/timesheets/",
        {"user_id": str(employee_profile.id), "week_start_date": "2024-03-11"},
        format="json",
    )

    assert resp.status_code == 201
    assert data(resp)["user_id"] == str(employee_profile.id)


@pytest.mark.django_db
def test_entry_totals_follow_every_change(employee_client, timesheet, timesheet_project):
    base = f"/api/v1/timesheets/{timesheet['id']}"

    resp = employee_client.post(
        f"{base}/entries/",
        {"project_id": str(timesheet_project.id), "hours_monday": "8.00", "hours_tuesday": "7.50"},
        format="json",
    )
    assert resp.status_code == 201
    entry = data(resp)
    assert entry["total_hours"] == "15.50"
    assert data(employee_client.get(f"{base}/"))["total_hours"] == "15.50"

    resp = employee_client.post(
        f"{base}/entries/",
        {"project_id": str(timesheet_project.id), "task_description": "On-call", "hours_saturday": "2.00"},
        format="json",
    )
    second = data(resp)
    assert data(employee_client.get(f"{base}/"))["total_hours"] == "17.50"

    resp = employee_client.put(f"{base}/entries/{entry['id']}/", {"hours_tuesday": "0"}, format="json")
    assert resp.status_code == 200
    assert data(resp)["total_hours"] == "8.00"
    assert data(employee_client.get(f"{base}/"))["total_hours"] == "10.00"

    resp = employee_client.delete(f"{base}/entries/{second['id']}/")
    assert resp.status_code == 200
    body = data(employee_client.get(f"{base}/"))
    assert body["total_hours"] == "8.00"
    assert [e["id"] for e in body["entries"]] == [entry["id"]]


@pytest.mark.django_db
def test_task_based_project_rejected(employee_client, timesheet, task_project, task_membership):
    resp = employee_client.post(
        f"/api/v1/timesheets/{timesheet['id']}/entries/",
        {"project_id": str(task_project.id), "hours_monday": "1.00"},
        format="json",
    )

    assert resp.status_code == 409
    assert error_code(resp) == "BILLING_MODEL_MISMATCH"


@pytest.mark.django_db
def test_day_over_24_hours_rejected(employee_client, timesheet, timesheet_project):
    resp = employee_client.post(
        f"/api/v1/timesheets/{timesheet['id']}/entries/",
        {"project_id": str(timesheet_project.id), "hours_monday": "25.00"},
        format="json",
    )

    assert resp.status_code == 400


@pytest.mark.django_db
def test_unknown_entry_is_not_found(employee_client, timesheet):
    resp = employee_client.delete(f"/api/v1/timesheets/{timesheet['id']}/entries/not-a-uuid/")

    assert resp.status_code == 404
    assert error_code(resp) == "TIMESHEET_ENTRY_NOT_FOUND"


@pytest.mark.django_db
def test_workflow_and_frozen_entries(employee_client, manager_client, timesheet, timesheet_project):
    base = f"/api/v1/timesheets/{timesheet['id']}"
    employee_client.post(f"{base}/entries/", {"project_id": str(timesheet_project.id), "hours_friday": "4.00"}, format="json")

    resp = employee_client.post(f"{base}/submit/")
    assert resp.status_code == 200
    assert data(resp)["status"] == "submitted"

    resp = employee_client.post(f"{base}/entries/", {"project_id": str(timesheet_project.id)}, format="json")
    assert resp.status_code == 409
    assert error_code(resp) == "TIMESHEET_NOT_EDITABLE"

    resp = manager_client.post(f"{base}/reject/", {"reason": "Missing Thursday"}, format="json")
    assert data(resp)["status"] == "rejected"
    assert data(resp)["rejection_reason"] == "Missing Thursday"

    resp = employee_client.post(f"{base}/entries/", {"project_id": str(timesheet_project.id), "hours_thursday": "3.00"}, format="json")
    assert resp.status_code == 201

    employee_client.post(f"{base}/submit/")
    resp = manager_client.post(f"{base}/approve/")
    assert resp.status_code == 200
    assert data(resp)["status"] == "approved"
    assert data(resp)["total_hours"] == "7.00"

    resp = manager_client.post(f"{base}/approve/")
    assert resp.status_code == 409
    assert error_code(resp) == "INVALID_STATUS"


@pytest.mark.django_db
def test_only_draft_can_be_deleted(employee_client, timesheet):
    Timesheet.objects.filter(id=timesheet["id"]).update(status=ApprovalStatus.REJECTED)

    resp = employee_client.delete(f"/api/v1/timesheets/{timesheet['id']}/")
    assert resp.status_code == 409
    assert error_code(resp) == "CANNOT_DELETE"

    Timesheet.objects.filter(id=timesheet["id"]).update(status=ApprovalStatus.DRAFT)
    resp = employee_client.delete(f"/api/v1/timesheets/{timesheet['id']}/")
    assert resp.status_code == 200
    assert not Timesheet.objects.filter(id=timesheet["id"]).exists()


@pytest.mark.django_db
def test_visibility(employee_client, manager_client, timesheet, manager_profile):
    manager_client.post("/api/v1/timesheets/", {"week_start_date": "2024-03-04"}, format="json")

    assert len(data(manager_client.get("/api/v1/timesheets/"))) == 2
    assert [t["id"] for t in data(employee_client.get("/api/v1/timesheets/"))] == [timesheet["id"]]
    assert data(manager_client.get(f"/api/v1/timesheets/?user_id={manager_profile.id}"))[0]["user_id"] == str(manager_profile.id)
