# worklog_core/organizations/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from worklog_core.organizations.models import Organization


class OrganizationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Organization
        fields = [
            "id",
            "name",
            "domain",
            "settings",
            "subscription_plan",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class OrganizationUpdateSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=255, required=False)
    domain = serializers.CharField(max_length=255, required=False, allow_blank=True)
    settings = serializers.JSONField(required=False)
