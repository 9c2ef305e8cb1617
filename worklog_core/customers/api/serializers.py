from __future__ import annotations

from rest_framework import serializers

from worklog_core.customers.models import Customer


class AddressSerializer(serializers.Serializer):
    street = serializers.CharField(required=False, allow_blank=True)
    city = serializers.CharField(required=False, allow_blank=True)
    state = serializers.CharField(required=False, allow_blank=True)
    postal_code = serializers.CharField(required=False, allow_blank=True)
    country = serializers.CharField(required=False, allow_blank=True)


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            "id",
            "organization_id",
            "name",
            "email",
            "phone",
            "address",
            "billing_settings",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class CustomerWriteSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255)
    email = serializers.EmailField(required=False, allow_blank=True)
    phone = serializers.CharField(max_length=64, required=False, allow_blank=True)
    address = AddressSerializer(required=False)
    billing_settings = serializers.JSONField(required=False)
    is_active = serializers.BooleanField(required=False)


class CustomerStatsSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    projects = serializers.DictField(child=serializers.IntegerField())
    sows = serializers.DictField(child=serializers.IntegerField())
    total_hours = serializers.DecimalField(max_digits=12, decimal_places=2)
    billable_hours = serializers.DecimalField(max_digits=12, decimal_places=2)
    total_billed = serializers.DecimalField(max_digits=14, decimal_places=2)
