"""Rows of another organization behave exactly like missing rows."""
import pytest

from worklog_core.billing.models import BillingBatch
from worklog_core.sows.models import SOW
from worklog_core.tests.helpers import error_code


@pytest.fixture
def foreign_rows(other_org, other_customer, other_admin_profile):
    sow = SOW.objects.create(organization=other_org, customer=other_customer, title="Foreign SOW")
    batch = BillingBatch.objects.create(organization=other_org, batch_name="Foreign batch")
    return {
        "organizations": (other_org.id, "ORGANIZATION_NOT_FOUND"),
        "customers": (other_customer.id, "CUSTOMER_NOT_FOUND"),
        "sows": (sow.id, "SOW_NOT_FOUND"),
        "users": (other_admin_profile.id, "USER_NOT_FOUND"),
        "billing/batches": (batch.id, "BILLING_BATCH_NOT_FOUND"),
    }


@pytest.mark.django_db
@pytest.mark.parametrize("resource", ["organizations", "customers", "sows", "users", "billing/batches"])
def test_cross_tenant_read_is_not_found(admin_client, foreign_rows, resource):
    obj_id, code = foreign_rows[resource]
    resp = admin_client.get(f"/api/v1/{resource}/{obj_id}/")

    assert resp.status_code == 404
    assert error_code(resp) == code


@pytest.mark.django_db
@pytest.mark.parametrize("resource", ["organizations", "customers", "sows", "users", "billing/batches"])
def test_cross_tenant_write_is_not_found_even_when_role_is_insufficient(employee_client, foreign_rows, resource):
    obj_id, code = foreign_rows[resource]
    resp = employee_client.patch(f"/api/v1/{resource}/{obj_id}/", {"name": "x"}, format="json")

    assert resp.status_code == 404
    assert error_code(resp) == code


@pytest.mark.django_db
def test_lists_never_include_foreign_rows(admin_client, customer, foreign_rows):
    resp = admin_client.get("/api/v1/customers/")

    ids = {row["id"] for row in resp.json()["data"]}
    assert ids == {str(customer.id)}
