from __future__ import annotations

from rest_framework import serializers

from worklog_core.billing.models import BatchType, BillingBatch, BillingItem, QuickBooksSyncStatus


class BillingItemSerializer(serializers.ModelSerializer):
    batch_id = serializers.UUIDField(read_only=True)
    time_entry_id = serializers.UUIDField(read_only=True, allow_null=True)
    timesheet_id = serializers.UUIDField(read_only=True, allow_null=True)
    timesheet_entry_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = BillingItem
        fields = [
            "id",
            "batch_id",
            "time_entry_id",
            "timesheet_id",
            "timesheet_entry_id",
            "item_type",
            "description",
            "quantity",
            "unit_rate",
            "total_amount",
            "is_billable",
            "billing_date",
            "created_at",
        ]
        read_only_fields = fields


class BillingBatchSerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True, allow_null=True)
    created_by_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = BillingBatch
        fields = [
            "id",
            "organization_id",
            "project_id",
            "batch_name",
            "batch_type",
            "status",
            "total_amount",
            "total_hours",
            "currency",
            "invoice_number",
            "invoice_date",
            "due_date",
            "quickbooks_invoice_id",
            "quickbooks_sync_status",
            "notes",
            "created_by_id",
            "sent_at",
            "paid_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillingBatchDetailSerializer(BillingBatchSerializer):
    items = BillingItemSerializer(many=True, read_only=True)

    class Meta(BillingBatchSerializer.Meta):
        fields = BillingBatchSerializer.Meta.fields + ["items"]
        read_only_fields = fields


class BillingItemInputSerializer(serializers.Serializer):
    """
    One of:
      - a manual item: description + quantity + unit_rate
      - time_entry_id: derived from an approved, billable time entry
      - timesheet_id: derived from an approved timesheet
    """
    description = serializers.CharField(required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    unit_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    is_billable = serializers.BooleanField(required=False, default=True)
    billing_date = serializers.DateField(required=False)
    time_entry_id = serializers.UUIDField(required=False)
    timesheet_id = serializers.UUIDField(required=False)

    def validate(self, attrs):
        sources = [k for k in ("time_entry_id", "timesheet_id") if attrs.get(k)]
        if len(sources) > 1:
            raise serializers.ValidationError("Provide either time_entry_id or timesheet_id, not both.")
        if sources:
            return attrs

        missing = {
            f: "This field is required."
            for f in ("description", "quantity", "unit_rate")
            if attrs.get(f) in (None, "")
        }
        if missing:
            raise serializers.ValidationError(missing)
        if attrs["quantity"] <= 0:
            raise serializers.ValidationError({"quantity": "Quantity must be > 0."})
        if attrs["unit_rate"] < 0:
            raise serializers.ValidationError({"unit_rate": "Unit rate must be >= 0."})
        return attrs


class BillingBatchCreateSerializer(serializers.Serializer):
    batch_name = serializers.CharField(max_length=255)
    project_id = serializers.UUIDField(required=False, allow_null=True)
    batch_type = serializers.ChoiceField(choices=BatchType.choices, required=False, default=BatchType.MANUAL)
    currency = serializers.CharField(max_length=8, required=False, default="USD")
    invoice_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = BillingItemInputSerializer(many=True, required=False)


class BillingBatchUpdateSerializer(serializers.Serializer):
    batch_name = serializers.CharField(max_length=255, required=False)
    currency = serializers.CharField(max_length=8, required=False)
    invoice_date = serializers.DateField(required=False, allow_null=True)
    due_date = serializers.DateField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    quickbooks_invoice_id = serializers.CharField(max_length=64, required=False, allow_blank=True)
    quickbooks_sync_status = serializers.ChoiceField(choices=QuickBooksSyncStatus.choices, required=False)


class BillingItemsAddSerializer(serializers.Serializer):
    items = BillingItemInputSerializer(many=True, allow_empty=False)


class BillingStatsSerializer(serializers.Serializer):
    batches = serializers.DictField(child=serializers.IntegerField())
    total_billed = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_hours = serializers.DecimalField(max_digits=12, decimal_places=2)
    recent_batches = BillingBatchSerializer(many=True)
