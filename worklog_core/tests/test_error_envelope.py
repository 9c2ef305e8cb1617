import pytest
from django.test import RequestFactory
from rest_framework.test import APIClient

from worklog_core.common.api.exceptions import ConflictError, api_exception_handler


@pytest.mark.django_db
def test_unauthenticated_request_returns_error_envelope():
    resp = APIClient().get("/api/v1/projects/")

    assert resp.status_code == 401
    body = resp.json()
    assert body["error"]["code"] == "AUTHENTICATION_REQUIRED"
    assert body["error"]["request_id"]
    assert body["error"]["timestamp"]
    assert resp["X-Request-ID"] == body["error"]["request_id"]


@pytest.mark.django_db
def test_incoming_request_id_is_echoed(admin_client):
    resp = admin_client.get("/api/v1/customers/", HTTP_X_REQUEST_ID="req-123")

    assert resp.status_code == 200
    assert resp["X-Request-ID"] == "req-123"


@pytest.mark.django_db
def test_validation_error_envelope_has_field_details(admin_client):
    resp = admin_client.post("/api/v1/customers/", {}, format="json")

    assert resp.status_code == 400
    err = resp.json()["error"]
    assert err["code"] == "VALIDATION_ERROR"
    assert err["message"] == "Validation failed."
    assert "name" in err["details"]


@pytest.mark.django_db
def test_malformed_id_is_reported_as_not_found(admin_client):
    resp = admin_client.get("/api/v1/customers/not-a-uuid/")

    assert resp.status_code == 404
    assert resp.json()["error"]["code"] == "CUSTOMER_NOT_FOUND"


def test_domain_conflict_keeps_its_code():
    req = RequestFactory().get("/api/v1/x/")
    resp = api_exception_handler(ConflictError("nope", code="ENTRY_NOT_EDITABLE"), {"request": req})

    assert resp.status_code == 409
    assert resp.data["error"]["code"] == "ENTRY_NOT_EDITABLE"
    assert resp.data["error"]["message"] == "nope"


def test_unhandled_exception_becomes_internal_error():
    req = RequestFactory().get("/api/v1/x/")
    resp = api_exception_handler(RuntimeError("boom"), {"request": req})

    assert resp.status_code == 500
    assert resp.data["error"]["code"] == "INTERNAL_ERROR"
    assert "boom" not in resp.data["error"]["message"]
