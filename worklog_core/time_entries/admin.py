from django.contrib import admin

from worklog_core.time_entries.models import TimeEntry


@admin.register(TimeEntry)
class TimeEntryAdmin(admin.ModelAdmin):
    list_display = ("id", "entry_date", "user", "project", "duration_hours", "is_billable", "status")
    list_filter = ("status", "is_billable")
    search_fields = ("task_description", "user__user__email", "project__name")
    date_hierarchy = "entry_date"
