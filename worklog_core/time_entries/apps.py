from __future__ import annotations

from django.apps import AppConfig


class TimeEntriesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "worklog_core.time_entries"
    verbose_name = "Time entries"
