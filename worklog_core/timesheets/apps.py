from __future__ import annotations

from django.apps import AppConfig


class TimesheetsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "worklog_core.timesheets"
    verbose_name = "Timesheets"
