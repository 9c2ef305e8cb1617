from __future__ import annotations

from django.apps import AppConfig


class OrganizationsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "worklog_core.organizations"
    verbose_name = "Organizations"
