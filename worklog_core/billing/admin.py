from django.contrib import admin

from worklog_core.billing.models import BillingBatch, BillingItem


class BillingItemInline(admin.TabularInline):
    model = BillingItem
    extra = 0
    readonly_fields = ("total_amount",)


@admin.register(BillingBatch)
class BillingBatchAdmin(admin.ModelAdmin):
    list_display = ("id", "batch_name", "project", "status", "total_amount", "total_hours", "invoice_number")
    list_filter = ("status", "batch_type", "quickbooks_sync_status")
    search_fields = ("batch_name", "invoice_number")
    readonly_fields = ("total_amount", "total_hours", "sent_at", "paid_at")
    inlines = [BillingItemInline]
