import pytest

from worklog_core.tests.helpers import data, error_code


@pytest.mark.django_db
def test_list_returns_only_own_organization(employee_client, org, other_org):
    resp = employee_client.get("/api/v1/organizations/")

    assert resp.status_code == 200
    assert [o["id"] for o in data(resp)] == [str(org.id)]


@pytest.mark.django_db
def test_manager_updates_and_settings_are_merged(manager_client, org):
    org.settings = {"week_start": "monday"}
    org.save()

    resp = manager_client.patch(
        f"/api/v1/organizations/{org.id}/",
        {"name": "Acme Consulting Ltd", "settings": {"currency": "EUR"}},
        format="json",
    )

    assert resp.status_code == 200
    body = data(resp)
    assert body["name"] == "Acme Consulting Ltd"
    assert body["settings"] == {"week_start": "monday", "currency": "EUR"}


@pytest.mark.django_db
def test_employee_cannot_update(employee_client, org):
    resp = employee_client.patch(f"/api/v1/organizations/{org.id}/", {"name": "X"}, format="json")

    assert resp.status_code == 403
    assert error_code(resp) == "INSUFFICIENT_PERMISSIONS"


@pytest.mark.django_db
def test_domain_must_be_unique(admin_client, org, other_org):
    resp = admin_client.patch(f"/api/v1/organizations/{org.id}/", {"domain": "globex.test"}, format="json")

    assert resp.status_code == 400
    assert error_code(resp) == "VALIDATION_ERROR"
