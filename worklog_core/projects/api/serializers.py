from __future__ import annotations

from rest_framework import serializers

from worklog_core.projects.models import BillingModel, Project, ProjectMembership, ProjectStatus


class ProjectSerializer(serializers.ModelSerializer):
    customer_id = serializers.UUIDField(read_only=True)
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    sow_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = Project
        fields = [
            "id",
            "organization_id",
            "customer_id",
            "customer_name",
            "sow_id",
            "name",
            "description",
            "billing_model",
            "status",
            "is_active",
            "start_date",
            "end_date",
            "hourly_rate",
            "budget_hours",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProjectWriteSerializer(serializers.Serializer):
    customer_id = serializers.UUIDField()
    sow_id = serializers.UUIDField(required=False, allow_null=True)
    name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    billing_model = serializers.ChoiceField(choices=BillingModel.choices, required=False)
    status = serializers.ChoiceField(choices=ProjectStatus.choices, required=False)
    is_active = serializers.BooleanField(required=False)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    budget_hours = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class MembershipSerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True)
    project_name = serializers.CharField(source="project.name", read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    user_email = serializers.EmailField(source="user.user.email", read_only=True)
    user_name = serializers.CharField(source="user.full_name", read_only=True)

    class Meta:
        model = ProjectMembership
        fields = [
            "id",
            "project_id",
            "project_name",
            "user_id",
            "user_email",
            "user_name",
            "role",
            "hourly_rate",
            "is_active",
            "joined_at",
            "left_at",
        ]
        read_only_fields = fields


class MembershipCreateSerializer(serializers.Serializer):
    user_id = serializers.UUIDField()
    role = serializers.CharField(max_length=64, required=False, default="member")
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)


class MembershipUpdateSerializer(serializers.Serializer):
    role = serializers.CharField(max_length=64, required=False)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    is_active = serializers.BooleanField(required=False)
