from __future__ import annotations

from rest_framework import serializers

from worklog_core.timesheets.models import Timesheet, TimesheetEntry


class TimesheetEntrySerializer(serializers.ModelSerializer):
    project_id = serializers.UUIDField(read_only=True)
    project_name = serializers.CharField(source="project.name", read_only=True)

    class Meta:
        model = TimesheetEntry
        fields = [
            "id",
            "project_id",
            "project_name",
            "task_description",
            "hours_monday",
            "hours_tuesday",
            "hours_wednesday",
            "hours_thursday",
            "hours_friday",
            "hours_saturday",
            "hours_sunday",
            "total_hours",
            "hourly_rate",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TimesheetSerializer(serializers.ModelSerializer):
    user_id = serializers.UUIDField(read_only=True)
    user_email = serializers.EmailField(source="user.user.email", read_only=True)
    approved_by_id = serializers.UUIDField(read_only=True, allow_null=True)
    entries = TimesheetEntrySerializer(many=True, read_only=True)

    class Meta:
        model = Timesheet
        fields = [
            "id",
            "organization_id",
            "user_id",
            "user_email",
            "week_start_date",
            "week_end_date",
            "total_hours",
            "notes",
            "status",
            "submitted_at",
            "approved_at",
            "approved_by_id",
            "rejection_reason",
            "entries",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class TimesheetListSerializer(TimesheetSerializer):
    class Meta(TimesheetSerializer.Meta):
        fields = [f for f in TimesheetSerializer.Meta.fields if f != "entries"]
        read_only_fields = fields


class TimesheetCreateSerializer(serializers.Serializer):
    user_id = serializers.UUIDField(required=False)
    week_start_date = serializers.DateField()
    week_end_date = serializers.DateField(required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class TimesheetUpdateSerializer(serializers.Serializer):
    notes = serializers.CharField(allow_blank=True)


_HOURS = dict(max_digits=4, decimal_places=2, required=False)


class TimesheetEntryWriteSerializer(serializers.Serializer):
    project_id = serializers.UUIDField()
    task_description = serializers.CharField(required=False, allow_blank=True)
    hours_monday = serializers.DecimalField(**_HOURS)
    hours_tuesday = serializers.DecimalField(**_HOURS)
    hours_wednesday = serializers.DecimalField(**_HOURS)
    hours_thursday = serializers.DecimalField(**_HOURS)
    hours_friday = serializers.DecimalField(**_HOURS)
    hours_saturday = serializers.DecimalField(**_HOURS)
    hours_sunday = serializers.DecimalField(**_HOURS)
