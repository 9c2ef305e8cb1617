from django.contrib import admin

from worklog_core.sows.models import SOW


@admin.register(SOW)
class SOWAdmin(admin.ModelAdmin):
    list_display = ("id", "title", "customer", "status", "total_budget", "start_date", "end_date")
    list_filter = ("status",)
    search_fields = ("title", "customer__name")
