from django.contrib import admin

from worklog_core.projects.models import Project, ProjectMembership


class ProjectMembershipInline(admin.TabularInline):
    model = ProjectMembership
    extra = 0
    fields = ("user", "role", "hourly_rate", "is_active", "joined_at", "left_at")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "customer", "billing_model", "status", "is_active")
    list_filter = ("status", "billing_model", "is_active")
    search_fields = ("name", "customer__name")
    inlines = [ProjectMembershipInline]
