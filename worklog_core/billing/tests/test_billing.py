from datetime import date
from decimal import Decimal

import pytest

from worklog_core.billing.models import BatchStatus, BillingBatch
from worklog_core.billing.services import BillingService
from worklog_core.common.api.exceptions import ConflictError
from worklog_core.common.workflow import ApprovalStatus
from worklog_core.projects.models import BillingModel, Project
from worklog_core.time_entries.models import TimeEntry
from worklog_core.timesheets.models import Timesheet, TimesheetEntry
from worklog_core.timesheets.services import TimesheetService
from worklog_core.tests.helpers import data, error_code


@pytest.fixture
def batch(org, admin_profile):
    return BillingService.create_batch(organization_id=org.id, created_by_id=admin_profile.id, batch_name="March")


@pytest.fixture
def approved_entry(org, task_project, employee_profile, task_membership):
    return TimeEntry.objects.create(
        organization=org,
        project=task_project,
        user=employee_profile,
        entry_date=date(2024, 3, 4),
        duration_hours=Decimal("2.50"),
        task_description="Build invoices",
        hourly_rate=Decimal("100.00"),
        status=ApprovalStatus.APPROVED,
    )


@pytest.fixture
def approved_timesheet(org, timesheet_project, employee_profile, timesheet_membership):
    ts = Timesheet.objects.create(
        organization=org,
        user=employee_profile,
        week_start_date=date(2024, 3, 4),
        week_end_date=date(2024, 3, 10),
        status=ApprovalStatus.APPROVED,
        total_hours=Decimal("6.00"),
    )
    TimesheetEntry.objects.create(
        organization=org,
        timesheet=ts,
        project=timesheet_project,
        task_description="Support",
        hours_monday=Decimal("4.00"),
        hours_tuesday=Decimal("2.00"),
        total_hours=Decimal("6.00"),
    )
    return ts


def _totals(batch_id):
    b = BillingBatch.objects.get(id=batch_id)
    return b.total_amount, b.total_hours


@pytest.mark.django_db
def test_totals_track_items(batch):
    assert _totals(batch.id) == (Decimal("0.00"), Decimal("0.00"))

    first, = BillingService.add_items(
        batch_id=batch.id,
        items=[{"description": "Design", "quantity": Decimal("2"), "unit_rate": Decimal("50")}],
    )
    assert _totals(batch.id) == (Decimal("100.00"), Decimal("2.00"))

    BillingService.add_items(
        batch_id=batch.id,
        items=[{"description": "Review", "quantity": Decimal("1"), "unit_rate": Decimal("75")}],
    )
    assert _totals(batch.id) == (Decimal("175.00"), Decimal("3.00"))

    BillingService.remove_item(batch_id=batch.id, item_id=first.id)
    assert _totals(batch.id) == (Decimal("75.00"), Decimal("1.00"))


@pytest.mark.django_db
def test_item_from_time_entry(batch, approved_entry):
    item, = BillingService.add_items(batch_id=batch.id, items=[{"time_entry_id": approved_entry.id}])

    assert item.quantity == Decimal("2.50")
    assert item.unit_rate == Decimal("100.00")
    assert item.total_amount == Decimal("250.00")
    assert item.description == "Build invoices"
    assert _totals(batch.id) == (Decimal("250.00"), Decimal("2.50"))


@pytest.mark.django_db
def test_time_entry_billed_once(org, admin_profile, batch, approved_entry):
    BillingService.add_items(batch_id=batch.id, items=[{"time_entry_id": approved_entry.id}])
    other = BillingService.create_batch(organization_id=org.id, created_by_id=admin_profile.id, batch_name="April")

    with pytest.raises(ConflictError) as exc:
        BillingService.add_items(batch_id=other.id, items=[{"time_entry_id": approved_entry.id}])
    assert exc.value.get_codes() == "TIME_ENTRY_ALREADY_BILLED"


@pytest.mark.django_db
def test_unapproved_time_entry_not_billable(batch, approved_entry):
    approved_entry.status = ApprovalStatus.SUBMITTED
    approved_entry.save()

    with pytest.raises(ConflictError) as exc:
        BillingService.add_items(batch_id=batch.id, items=[{"time_entry_id": approved_entry.id}])
    assert exc.value.get_codes() == "TIME_ENTRY_NOT_BILLABLE"


@pytest.mark.django_db
def test_items_from_timesheet_use_project_rate(batch, approved_timesheet):
    items = BillingService.add_items(batch_id=batch.id, items=[{"timesheet_id": approved_timesheet.id}])

    assert len(items) == 1
    assert items[0].quantity == Decimal("6.00")
    assert items[0].unit_rate == Decimal("80.00")
    assert items[0].description.startswith("Support retainer: Support")
    assert _totals(batch.id) == (Decimal("480.00"), Decimal("6.00"))

    with pytest.raises(ConflictError) as exc:
        BillingService.add_items(batch_id=batch.id, items=[{"timesheet_id": approved_timesheet.id}])
    assert exc.value.get_codes() == "TIMESHEET_ALREADY_BILLED"


@pytest.mark.django_db
def test_failed_item_leaves_batch_untouched(batch, approved_entry):
    approved_entry.is_billable = False
    approved_entry.save()

    with pytest.raises(ConflictError):
        BillingService.add_items(
            batch_id=batch.id,
            items=[
                {"description": "Kickoff", "quantity": Decimal("1"), "unit_rate": Decimal("10")},
                {"time_entry_id": approved_entry.id},
            ],
        )

    assert not batch.items.exists()
    assert _totals(batch.id) == (Decimal("0.00"), Decimal("0.00"))


@pytest.mark.django_db
def test_send_allocates_sequential_invoice_numbers(org, admin_profile, batch):
    BillingService.add_items(batch_id=batch.id, items=[{"description": "A", "quantity": 1, "unit_rate": 10}])
    second = BillingService.create_batch(
        organization_id=org.id,
        created_by_id=admin_profile.id,
        batch_name="April",
        items=[{"description": "B", "quantity": 1, "unit_rate": 20}],
    )

    assert BillingService.send(batch_id=batch.id).invoice_number == "INV-000001"
    sent = BillingService.send(batch_id=second.id)
    assert sent.invoice_number == "INV-000002"
    assert sent.status == BatchStatus.SENT
    assert sent.invoice_date is not None


@pytest.mark.django_db
def test_empty_batch_cannot_be_sent(batch):
    with pytest.raises(ConflictError) as exc:
        BillingService.send(batch_id=batch.id)
    assert exc.value.get_codes() == "BATCH_EMPTY"


@pytest.mark.django_db
def test_items_frozen_after_send(batch):
    BillingService.add_items(batch_id=batch.id, items=[{"description": "A", "quantity": 1, "unit_rate": 10}])
    BillingService.send(batch_id=batch.id)

    with pytest.raises(ConflictError) as exc:
        BillingService.add_items(batch_id=batch.id, items=[{"description": "B", "quantity": 1, "unit_rate": 10}])
    assert exc.value.get_codes() == "BATCH_NOT_EDITABLE"


@pytest.mark.django_db
def test_timesheet_split_across_project_batches(org, admin_profile, customer, timesheet_project, approved_timesheet):
    hosting = Project.objects.create(
        organization=org,
        customer=customer,
        name="Hosting",
        billing_model=BillingModel.TIMESHEET,
        hourly_rate=Decimal("60.00"),
    )
    TimesheetEntry.objects.create(
        organization=org,
        timesheet=approved_timesheet,
        project=hosting,
        task_description="Patching",
        hours_wednesday=Decimal("3.00"),
        total_hours=Decimal("3.00"),
    )
    support_batch = BillingService.create_batch(
        organization_id=org.id, created_by_id=admin_profile.id, batch_name="Support", project=timesheet_project
    )
    hosting_batch = BillingService.create_batch(
        organization_id=org.id, created_by_id=admin_profile.id, batch_name="Hosting", project=hosting
    )

    BillingService.add_items(batch_id=support_batch.id, items=[{"timesheet_id": approved_timesheet.id}])
    items = BillingService.add_items(batch_id=hosting_batch.id, items=[{"timesheet_id": approved_timesheet.id}])

    assert len(items) == 1
    assert items[0].timesheet_entry.project_id == hosting.id
    assert _totals(support_batch.id) == (Decimal("480.00"), Decimal("6.00"))
    assert _totals(hosting_batch.id) == (Decimal("180.00"), Decimal("3.00"))

    with pytest.raises(ConflictError) as exc:
        BillingService.add_items(batch_id=hosting_batch.id, items=[{"timesheet_id": approved_timesheet.id}])
    assert exc.value.get_codes() == "TIMESHEET_ALREADY_BILLED"


@pytest.mark.django_db
def test_unscoped_batch_takes_only_unbilled_timesheet_entries(org, admin_profile, customer, timesheet_project, approved_timesheet):
    hosting = Project.objects.create(
        organization=org,
        customer=customer,
        name="Hosting",
        billing_model=BillingModel.TIMESHEET,
        hourly_rate=Decimal("60.00"),
    )
    TimesheetEntry.objects.create(
        organization=org,
        timesheet=approved_timesheet,
        project=hosting,
        hours_friday=Decimal("2.00"),
        total_hours=Decimal("2.00"),
    )
    support_batch = BillingService.create_batch(
        organization_id=org.id, created_by_id=admin_profile.id, batch_name="Support", project=timesheet_project
    )
    BillingService.add_items(batch_id=support_batch.id, items=[{"timesheet_id": approved_timesheet.id}])

    rest = BillingService.create_batch(organization_id=org.id, created_by_id=admin_profile.id, batch_name="Rest")
    items = BillingService.add_items(batch_id=rest.id, items=[{"timesheet_id": approved_timesheet.id}])

    assert [i.quantity for i in items] == [Decimal("2.00")]
    assert _totals(rest.id) == (Decimal("120.00"), Decimal("2.00"))


@pytest.mark.django_db
def test_timesheet_items_keep_the_rate_in_force_when_logged(
    org, batch, employee_profile, timesheet_project, timesheet_membership
):
    ts = TimesheetService.create(
        organization_id=org.id, user=employee_profile, week_start_date=date(2024, 3, 11)
    )
    entry = TimesheetService.add_entry(
        timesheet_id=ts.id, project=timesheet_project, hours={"hours_monday": Decimal("5.00")}
    )
    assert entry.hourly_rate == Decimal("80.00")

    timesheet_project.hourly_rate = Decimal("95.00")
    timesheet_project.save()
    Timesheet.objects.filter(id=ts.id).update(status=ApprovalStatus.APPROVED)

    item, = BillingService.add_items(batch_id=batch.id, items=[{"timesheet_id": ts.id}])

    assert item.unit_rate == Decimal("80.00")
    assert item.total_amount == Decimal("400.00")


@pytest.mark.django_db
def test_invoice_fields_locked_after_send(batch):
    BillingService.add_items(batch_id=batch.id, items=[{"description": "A", "quantity": 1, "unit_rate": 10}])
    BillingService.update_batch(batch_id=batch.id, currency="EUR", due_date=date(2024, 4, 30))
    BillingService.send(batch_id=batch.id)

    for changes in ({"currency": "GBP"}, {"due_date": date(2024, 5, 31)}, {"invoice_date": date(2024, 1, 1)}):
        with pytest.raises(ConflictError) as exc:
            BillingService.update_batch(batch_id=batch.id, **changes)
        assert exc.value.get_codes() == "BATCH_NOT_EDITABLE"

    # unchanged values and bookkeeping fields still go through
    updated = BillingService.update_batch(batch_id=batch.id, currency="EUR", notes="Chased", quickbooks_invoice_id="QB-9")
    assert updated.notes == "Chased"
    assert updated.quickbooks_invoice_id == "QB-9"
    assert BillingBatch.objects.get(id=batch.id).currency == "EUR"


# ---- API ----


@pytest.mark.django_db
def test_api_batch_lifecycle(manager_client, admin_client, approved_entry):
    resp = manager_client.post(
        "/api/v1/billing/batches/",
        {"batch_name": "March", "items": [{"description": "Setup", "quantity": "1.00", "unit_rate": "40.00"}]},
        format="json",
    )
    assert resp.status_code == 201
    batch = data(resp)
    assert batch["status"] == "draft"
    assert batch["total_amount"] == "40.00"
    assert len(batch["items"]) == 1
    base = f"/api/v1/billing/batches/{batch['id']}"

    resp = manager_client.post(f"{base}/items/", {"time_entry_id": str(approved_entry.id)}, format="json")
    assert resp.status_code == 201
    assert data(resp)[0]["total_amount"] == "250.00"
    assert data(manager_client.get(f"{base}/"))["total_amount"] == "290.00"

    resp = manager_client.post(f"{base}/send/")
    assert resp.status_code == 200
    assert data(resp)["invoice_number"] == "INV-000001"

    resp = admin_client.delete(f"{base}/")
    assert resp.status_code == 409
    assert error_code(resp) == "CANNOT_DELETE"

    resp = manager_client.post(f"{base}/mark_paid/")
    assert data(resp)["status"] == "paid"
    assert data(resp)["paid_at"] is not None

    resp = manager_client.post(f"{base}/send/")
    assert resp.status_code == 409
    assert error_code(resp) == "INVALID_STATUS"


@pytest.mark.django_db
def test_api_delete_only_in_draft(admin_client, batch):
    BillingBatch.objects.filter(id=batch.id).update(status=BatchStatus.SENT)
    resp = admin_client.delete(f"/api/v1/billing/batches/{batch.id}/")
    assert resp.status_code == 409

    BillingBatch.objects.filter(id=batch.id).update(status=BatchStatus.DRAFT)
    resp = admin_client.delete(f"/api/v1/billing/batches/{batch.id}/")
    assert resp.status_code == 200
    assert not BillingBatch.objects.filter(id=batch.id).exists()


@pytest.mark.django_db
def test_api_manager_cannot_delete_and_employee_cannot_manage_items(manager_client, employee_client, batch):
    assert manager_client.delete(f"/api/v1/billing/batches/{batch.id}/").status_code == 403

    resp = employee_client.post(
        f"/api/v1/billing/batches/{batch.id}/items/",
        {"description": "x", "quantity": "1", "unit_rate": "1"},
        format="json",
    )
    assert resp.status_code == 403


@pytest.mark.django_db
def test_api_remove_item(manager_client, batch):
    item, = BillingService.add_items(batch_id=batch.id, items=[{"description": "A", "quantity": 2, "unit_rate": 10}])

    resp = manager_client.delete(f"/api/v1/billing/batches/{batch.id}/items/{item.id}/")
    assert resp.status_code == 200
    assert _totals(batch.id) == (Decimal("0.00"), Decimal("0.00"))

    resp = manager_client.delete(f"/api/v1/billing/batches/{batch.id}/items/{item.id}/")
    assert resp.status_code == 404
    assert error_code(resp) == "BILLING_ITEM_NOT_FOUND"


@pytest.mark.django_db
def test_api_manual_item_requires_fields(manager_client, batch):
    resp = manager_client.post(f"/api/v1/billing/batches/{batch.id}/items/", {"description": "x"}, format="json")

    assert resp.status_code == 400


@pytest.mark.django_db
def test_api_status_cannot_be_patched(manager_client, batch):
    resp = manager_client.patch(f"/api/v1/billing/batches/{batch.id}/", {"status": "paid", "notes": "hi"}, format="json")

    assert resp.status_code == 200
    assert data(resp)["status"] == "draft"
    assert data(resp)["notes"] == "hi"


@pytest.mark.django_db
def test_stats(org, admin_profile, admin_client, client_role_client):
    for name, status, amount, hours in (
        ("A", BatchStatus.DRAFT, "100.00", "1.00"),
        ("B", BatchStatus.SENT, "200.00", "2.00"),
        ("C", BatchStatus.PAID, "300.00", "3.00"),
    ):
        BillingBatch.objects.create(
            organization=org,
            batch_name=name,
            status=status,
            total_amount=Decimal(amount),
            total_hours=Decimal(hours),
        )

    resp = admin_client.get("/api/v1/billing/stats/")

    assert resp.status_code == 200
    body = data(resp)
    assert body["batches"] == {"total": 3, "draft": 1, "sent": 1, "paid": 1}
    assert body["total_billed"] == "500.00"
    assert body["total_hours"] == "5.00"
    assert len(body["recent_batches"]) == 3

    assert client_role_client.get("/api/v1/billing/stats/").status_code == 200
