from django.apps import AppConfig


class IamConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "worklog_core.iam"
    verbose_name = "Identity and access"

    def ready(self) -> None:
        # import here so app loading doesn't break tooling
        from worklog_core.iam import openapi  # noqa: F401
