from __future__ import annotations

from rest_framework import serializers

from worklog_core.time_entries.models import TimeEntry


class TimeEntrySerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True)
    project_name = serializers.CharField(source="project.name", read_only=True)
    user_id = serializers.UUIDField(read_only=True)
    user_email = serializers.EmailField(source="user.user.email", read_only=True)
    approved_by_id = serializers.UUIDField(read_only=True, allow_null=True)

    class Meta:
        model = TimeEntry
        fields = [
            "id",
            "organization_id",
            "project_id",
            "project_name",
            "user_id",
            "user_email",
            "entry_date",
            "duration_hours",
            "task_description",
            "is_billable",
            "hourly_rate",
            "notes",
            "status",
            "submitted_at",
            "approved_at",
            "approved_by_id",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TimeEntryWriteSerializer(serializers.Serializer):
    project_id = serializers.UUIDField()
    entry_date = serializers.DateField()
    duration_hours = serializers.DecimalField(max_digits=5, decimal_places=2)
    task_description = serializers.CharField()
    is_billable = serializers.BooleanField(required=False, default=True)
    hourly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
