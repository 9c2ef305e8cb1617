# config/settings/test.py
from .base import *  # noqa

DEBUG = False
SECRET_KEY = "test-secret-key"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

KEYCLOAK_PROVISIONING_ENABLED = False

LOGGING["root"]["level"] = "WARNING"  # noqa: F405
LOGGING["loggers"]["worklog_core"]["level"] = "WARNING"  # noqa: F405
