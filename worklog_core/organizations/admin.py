from django.contrib import admin

from worklog_core.organizations.models import Organization


@admin.register(Organization)
class OrganizationAdmin(admin.ModelAdmin):
    list_display = ("name", "domain", "subscription_plan", "is_active", "created_at")
    list_filter = ("subscription_plan", "is_active", "created_at")
    search_fields = ("name", "domain")
    ordering = ("name",)
    readonly_fields = ("id", "created_at", "updated_at")
