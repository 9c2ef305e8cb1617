from django.contrib import admin

from worklog_core.customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("id", "name", "email", "organization", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "email")
