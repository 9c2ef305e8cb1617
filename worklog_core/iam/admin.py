from django.contrib import admin

from worklog_core.iam.models import UserProfile


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "organization",
        "role",
        "is_active",
        "idp_account_status",
        "idp_role_status",
        "idp_group_status",
    )
    list_filter = ("role", "is_active", "idp_account_status", "idp_role_status", "idp_group_status")
    search_fields = ("user__email", "user__first_name", "user__last_name", "keycloak_id")
    readonly_fields = ("id", "created_at", "updated_at", "idp_synced_at", "idp_last_error")
