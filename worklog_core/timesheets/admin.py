from django.contrib import admin

from worklog_core.timesheets.models import Timesheet, TimesheetEntry


class TimesheetEntryInline(admin.TabularInline):
    model = TimesheetEntry
    extra = 0
    readonly_fields = ("total_hours",)


@admin.register(Timesheet)
class TimesheetAdmin(admin.ModelAdmin):
    list_display = ("id", "user", "week_start_date", "week_end_date", "total_hours", "status")
    list_filter = ("status",)
    search_fields = ("user__user__email",)
    readonly_fields = ("total_hours",)
    inlines = [TimesheetEntryInline]
