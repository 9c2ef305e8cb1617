from __future__ import annotations

from rest_framework import serializers

from worklog_core.sows.models import SOW, SOWStatus


class SOWSerializer(serializers.ModelSerializer):
    customer_id = serializers.UUIDField(read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)

    class Meta:
        model = SOW
        fields = [
            "id",
            "organization_id",
            "customer_id",
            "customer_name",
            "title",
            "description",
            "scope",
            "deliverables",
            "billing_terms",
            "hourly_rate",
            "total_budget",
            "start_date",
            "end_date",
            "status",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class SOWWriteSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    scope = serializers.CharField(required=False, allow_blank=True)
    deliverables = serializers.ListField(child=serializers.JSONField(), required=False)
    billing_terms = serializers.CharField(required=False, allow_blank=True)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    total_budget = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    status = serializers.ChoiceField(choices=SOWStatus.choices, required=False)


class SOWStatsSerializer(serializers.Serializer):
    sow_id = serializers.UUIDField()
    project_count = serializers.IntegerField()
    total_hours = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_billed = serializers.DecimalField(max_digits=14, decimal_places=2)
    budget_utilization = serializers.DecimalField(max_digits=8, decimal_places=2)
