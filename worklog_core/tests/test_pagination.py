import pytest

from worklog_core.customers.models import Customer


@pytest.fixture
def many_customers(org):
    for i in range(25):
        Customer.objects.create(organization=org, name=f"Customer {i:02d}")


@pytest.mark.django_db
def test_default_page_and_meta(admin_client, many_customers):
    resp = admin_client.get("/api/v1/customers/")

    assert resp.status_code == 200
    body = resp.json()
    assert len(body["data"]) == 20
    assert body["pagination"] == {
        "page": 1,
        "limit": 20,
        "total": 25,
        "pages": 2,
        "has_next": True,
        "has_prev": False,
    }


@pytest.mark.django_db
def test_page_past_end_is_empty(admin_client, many_customers):
    resp = admin_client.get("/api/v1/customers/?page=5&limit=10")

    assert resp.status_code == 200
    body = resp.json()
    assert body["data"] == []
    assert body["pagination"]["has_prev"] is True
    assert body["pagination"]["has_next"] is False


@pytest.mark.django_db
@pytest.mark.parametrize("query", ["page=0", "limit=0", "limit=101", "page=abc"])
def test_invalid_paging_params(admin_client, query):
    resp = admin_client.get(f"/api/v1/customers/?{query}")

    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "VALIDATION_ERROR"
