from __future__ import annotations

from django.apps import AppConfig


class SowsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "worklog_core.sows"
    verbose_name = "Statements of work"
