# worklog_core/billing/services.py
from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from django.db import transaction
from django.db.models import Sum
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from worklog_core.billing.models import (
    BatchStatus,
    BatchType,
    BillingBatch,
    BillingItem,
    ItemType,
)
from worklog_core.common.api.exceptions import ConflictError
from worklog_core.common.policy import Kind, not_found
from worklog_core.common.workflow import ApprovalStatus
from worklog_core.organizations.models import Organization
from worklog_core.projects.models import Project
from worklog_core.projects.selectors import resolve_rate
from worklog_core.time_entries.models import TimeEntry
from worklog_core.timesheets.models import Timesheet, TimesheetEntry

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
INVOICE_PREFIX = "INV-"

# descriptive fields writable through update; status only moves through send / mark_paid
UPDATABLE_FIELDS = (
    "batch_name",
    "currency",
    "invoice_date",
    "due_date",
    "notes",
    "quickbooks_invoice_id",
    "quickbooks_sync_status",
)
# fixed once the invoice has gone out
DRAFT_ONLY_FIELDS = ("currency", "invoice_date", "due_date")


class BillingService:
    """
    Billing batches and their items.

    Invariant: batch.total_amount == sum(item.total_amount) and
    batch.total_hours == sum(item.quantity). Every item write locks the
    batch row and recomputes both in the same transaction.
    """

    # ---- batches ----

    @staticmethod
    @transaction.atomic
    def create_batch(
        *,
        organization_id: UUID,
        created_by_id: UUID,
        batch_name: str,
        project: Optional[Project] = None,
        batch_type: str = BatchType.MANUAL,
        currency: str = "USD",
        invoice_date: Optional[date] = None,
        due_date: Optional[date] = None,
        notes: str = "",
        items: Optional[Iterable[dict]] = None,
    ) -> BillingBatch:
        batch_name = (batch_name or "").strip()
        if not batch_name:
            raise ValidationError({"batch_name": "This field is required."})

        batch = BillingBatch.objects.create(
            organization_id=organization_id,
            project=project,
            batch_name=batch_name,
            batch_type=batch_type,
            status=BatchStatus.DRAFT,
            currency=currency or "USD",
            invoice_date=invoice_date,
            due_date=due_date,
            notes=notes or "",
            created_by_id=created_by_id,
            total_amount=Decimal("0.00"),
            total_hours=Decimal("0.00"),
        )

        for payload in items or []:
            BillingService._create_items(batch, payload)
        BillingService._recalc_totals(batch)

        logger.info("billing batch created", extra={"batch_id": str(batch.id), "total_amount": str(batch.total_amount)})
        return batch

    @staticmethod
    @transaction.atomic
    def update_batch(*, batch_id: UUID, **changes) -> BillingBatch:
        batch = BillingBatch.objects.select_for_update().get(id=batch_id)

        unknown = sorted(set(changes) - set(UPDATABLE_FIELDS))
        if unknown:
            raise ValidationError({f: "This field cannot be updated." for f in unknown})
        locked = sorted(f for f in changes if f in DRAFT_ONLY_FIELDS and changes[f] != getattr(batch, f))
        if locked and batch.status != BatchStatus.DRAFT:
            raise ConflictError(
                f"{', '.join(locked)} cannot change once the batch is {batch.status}.",
                code="BATCH_NOT_EDITABLE",
            )
        if "batch_name" in changes:
            name = (changes["batch_name"] or "").strip()
            if not name:
                raise ValidationError({"batch_name": "This field may not be blank."})
            changes["batch_name"] = name

        update_fields = ["updated_at"]
        for field, value in changes.items():
            setattr(batch, field, value)
            update_fields.append(field)

        batch.save(update_fields=update_fields)
        return batch

    @staticmethod
    @transaction.atomic
    def delete_batch(*, batch_id: UUID) -> None:
        batch = BillingBatch.objects.select_for_update().get(id=batch_id)
        if batch.status != BatchStatus.DRAFT:
            raise ConflictError("Only draft batches can be deleted.", code="CANNOT_DELETE")
        batch.delete()
        logger.info("billing batch deleted", extra={"batch_id": str(batch_id)})

    # ---- items ----

    @staticmethod
    def _ensure_editable(batch: BillingBatch) -> None:
        if batch.status != BatchStatus.DRAFT:
            raise ConflictError("Items can only be changed while the batch is a draft.", code="BATCH_NOT_EDITABLE")

    @staticmethod
    def _recalc_totals(batch: BillingBatch) -> None:
        sums = BillingItem.objects.filter(batch=batch).aggregate(amount=Sum("total_amount"), hours=Sum("quantity"))
        batch.total_amount = (sums["amount"] or Decimal("0.00")).quantize(CENT)
        batch.total_hours = (sums["hours"] or Decimal("0.00")).quantize(CENT)
        batch.save(update_fields=["total_amount", "total_hours", "updated_at"])
        logger.info(
            "billing batch totals recomputed",
            extra={"batch_id": str(batch.id), "total_amount": str(batch.total_amount), "total_hours": str(batch.total_hours)},
        )

    @staticmethod
    def _new_item(batch: BillingBatch, **fields) -> BillingItem:
        quantity = Decimal(str(fields["quantity"])).quantize(CENT)
        unit_rate = Decimal(str(fields["unit_rate"])).quantize(CENT)
        if quantity <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0."})
        if unit_rate < 0:
            raise ValidationError({"unit_rate": "Unit rate must be >= 0."})
        if not (fields.get("description") or "").strip():
            raise ValidationError({"description": "This field is required."})

        return BillingItem.objects.create(
            organization_id=batch.organization_id,
            batch=batch,
            time_entry=fields.get("time_entry"),
            timesheet=fields.get("timesheet"),
            timesheet_entry=fields.get("timesheet_entry"),
            item_type=fields.get("item_type", ItemType.MANUAL),
            description=fields["description"].strip(),
            quantity=quantity,
            unit_rate=unit_rate,
            total_amount=(quantity * unit_rate).quantize(CENT),
            is_billable=fields.get("is_billable", True),
            billing_date=fields.get("billing_date") or timezone.localdate(),
        )

    @staticmethod
    def _items_from_time_entry(batch: BillingBatch, time_entry_id: UUID) -> list[BillingItem]:
        entry = (
            TimeEntry.objects.select_for_update()
            .filter(organization_id=batch.organization_id, id=time_entry_id)
            .first()
        )
        if entry is None:
            raise not_found(Kind.TIME_ENTRY)
        if entry.status != ApprovalStatus.APPROVED or not entry.is_billable:
            raise ConflictError("Only approved, billable time entries can be billed.", code="TIME_ENTRY_NOT_BILLABLE")
        if BillingItem.objects.filter(time_entry=entry).exists():
            raise ConflictError("Time entry has already been billed.", code="TIME_ENTRY_ALREADY_BILLED")
        if batch.project_id and entry.project_id != batch.project_id:
            raise ValidationError({"time_entry_id": "Time entry belongs to a different project."})

        return [
            BillingService._new_item(
                batch,
                item_type=ItemType.TIME_ENTRY,
                time_entry=entry,
                description=entry.task_description,
                quantity=entry.duration_hours,
                unit_rate=entry.hourly_rate or Decimal("0.00"),
                billing_date=entry.entry_date,
            )
        ]

    @staticmethod
    def _items_from_timesheet(batch: BillingBatch, timesheet_id: UUID) -> list[BillingItem]:
        """
        One item per timesheet entry (projects may bill at different rates).

        A project batch only takes that project's entries; entries billed
        earlier are skipped, so the rest of the timesheet stays billable
        through other batches.
        """
        ts = (
            Timesheet.objects.select_for_update()
            .filter(organization_id=batch.organization_id, id=timesheet_id)
            .first()
        )
        if ts is None:
            raise not_found(Kind.TIMESHEET)
        if ts.status != ApprovalStatus.APPROVED:
            raise ConflictError("Only approved timesheets can be billed.", code="TIMESHEET_NOT_BILLABLE")

        entries = ts.entries.select_related("project").filter(total_hours__gt=0)
        if batch.project_id:
            entries = entries.filter(project_id=batch.project_id)
        entries = list(entries)
        if not entries:
            raise ValidationError({"timesheet_id": "Timesheet has no billable hours for this batch."})

        billed = set(
            BillingItem.objects.filter(timesheet_entry__in=entries).values_list("timesheet_entry_id", flat=True)
        )
        entries = [e for e in entries if e.id not in billed]
        if not entries:
            raise ConflictError("Timesheet has already been billed.", code="TIMESHEET_ALREADY_BILLED")

        week = f"{ts.week_start_date:%Y-%m-%d} - {ts.week_end_date:%Y-%m-%d}"
        return [
            BillingService._new_item(
                batch,
                item_type=ItemType.TIMESHEET,
                timesheet=ts,
                timesheet_entry=e,
                description=f"{e.project.name}: {e.task_description or 'Timesheet hours'} ({week})",
                quantity=e.total_hours,
                unit_rate=BillingService._timesheet_rate(e, ts.user_id),
                billing_date=ts.week_end_date,
            )
            for e in entries
        ]

    @staticmethod
    def _timesheet_rate(entry: TimesheetEntry, user_id: UUID) -> Decimal:
        # entries logged before any rate existed fall back to the current one
        if entry.hourly_rate is not None:
            return entry.hourly_rate
        return resolve_rate(entry.project, user_id) or Decimal("0.00")

    @staticmethod
    def _create_items(batch: BillingBatch, payload: dict) -> list[BillingItem]:
        if payload.get("time_entry_id"):
            return BillingService._items_from_time_entry(batch, payload["time_entry_id"])
        if payload.get("timesheet_id"):
            return BillingService._items_from_timesheet(batch, payload["timesheet_id"])
        return [
            BillingService._new_item(
                batch,
                description=payload.get("description", ""),
                quantity=payload["quantity"],
                unit_rate=payload["unit_rate"],
                is_billable=payload.get("is_billable", True),
                billing_date=payload.get("billing_date"),
            )
        ]

    @staticmethod
    @transaction.atomic
    def add_items(*, batch_id: UUID, items: Iterable[dict]) -> list[BillingItem]:
        batch = BillingBatch.objects.select_for_update().get(id=batch_id)
        BillingService._ensure_editable(batch)

        created: list[BillingItem] = []
        for payload in items:
            created.extend(BillingService._create_items(batch, payload))

        BillingService._recalc_totals(batch)
        return created

    @staticmethod
    @transaction.atomic
    def remove_item(*, batch_id: UUID, item_id: UUID) -> BillingBatch:
        batch = BillingBatch.objects.select_for_update().get(id=batch_id)
        BillingService._ensure_editable(batch)

        deleted, _ = BillingItem.objects.filter(batch=batch, id=item_id).delete()
        if not deleted:
            raise not_found(Kind.BILLING_ITEM)

        BillingService._recalc_totals(batch)
        return batch

    # ---- transitions ----

    @staticmethod
    def _next_invoice_number(organization_id: UUID) -> str:
        # serialize allocation per organization
        Organization.objects.select_for_update().filter(id=organization_id).first()

        numbers = BillingBatch.objects.filter(
            organization_id=organization_id,
            invoice_number__startswith=INVOICE_PREFIX,
        ).values_list("invoice_number", flat=True)

        last = 0
        for number in numbers:
            suffix = number[len(INVOICE_PREFIX):]
            if suffix.isdigit():
                last = max(last, int(suffix))
        return f"{INVOICE_PREFIX}{last + 1:06d}"

    @staticmethod
    @transaction.atomic
    def send(*, batch_id: UUID) -> BillingBatch:
        batch = BillingBatch.objects.select_for_update().get(id=batch_id)
        if batch.status != BatchStatus.DRAFT:
            raise ConflictError(f"Only draft batches can be sent (current status '{batch.status}').", code="INVALID_STATUS")
        if not BillingItem.objects.filter(batch=batch).exists():
            raise ConflictError("Cannot send a batch without items.", code="BATCH_EMPTY")

        now = timezone.now()
        batch.status = BatchStatus.SENT
        batch.sent_at = now
        batch.invoice_date = batch.invoice_date or timezone.localdate()
        if not batch.invoice_number:
            batch.invoice_number = BillingService._next_invoice_number(batch.organization_id)

        batch.save(update_fields=["status", "sent_at", "invoice_date", "invoice_number", "updated_at"])
        logger.info(
            "billing batch sent",
            extra={"batch_id": str(batch.id), "invoice_number": batch.invoice_number, "total_amount": str(batch.total_amount)},
        )
        return batch

    @staticmethod
    @transaction.atomic
    def mark_paid(*, batch_id: UUID) -> BillingBatch:
        batch = BillingBatch.objects.select_for_update().get(id=batch_id)
        if batch.status != BatchStatus.SENT:
            raise ConflictError(f"Only sent batches can be marked paid (current status '{batch.status}').", code="INVALID_STATUS")

        batch.status = BatchStatus.PAID
        batch.paid_at = timezone.now()
        batch.save(update_fields=["status", "paid_at", "updated_at"])
        logger.info("billing batch paid", extra={"batch_id": str(batch.id)})
        return batch
