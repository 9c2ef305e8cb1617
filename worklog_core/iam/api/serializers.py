from __future__ import annotations

from rest_framework import serializers

from worklog_core.iam.models import Role, UserProfile


class UserSerializer(serializers.ModelSerializer):
    email = serializers.EmailField(source="user.email", read_only=True)
    first_name = serializers.CharField(source="user.first_name", read_only=True)
    last_name = serializers.CharField(source="user.last_name", read_only=True)
    full_name = serializers.CharField(read_only=True)
    organization_id = serializers.UUIDField(read_only=True)
    idp_sync_status = serializers.CharField(read_only=True)
    idp_steps = serializers.DictField(child=serializers.CharField(), read_only=True)

    class Meta:
        model = UserProfile
        fields = [
            "id",
            "email",
            "first_name",
            "last_name",
            "full_name",
            "role",
            "is_active",
            "keycloak_id",
            "organization_id",
            "idp_sync_status",
            "idp_steps",
            "idp_last_error",
            "idp_synced_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class UserCreateSerializer(serializers.Serializer):
    email = serializers.EmailField()
    first_name = serializers.CharField(max_length=150)
    last_name = serializers.CharField(max_length=150)
    role = serializers.ChoiceField(choices=Role.choices, default=Role.EMPLOYEE)
    password = serializers.CharField(write_only=True, required=False, min_length=8, trim_whitespace=False)
    keycloak_id = serializers.CharField(max_length=255, required=False, allow_blank=True)


class UserUpdateSerializer(serializers.Serializer):
    first_name = serializers.CharField(max_length=150, required=False)
    last_name = serializers.CharField(max_length=150, required=False)
    role = serializers.ChoiceField(choices=Role.choices, required=False)
    is_active = serializers.BooleanField(required=False)
