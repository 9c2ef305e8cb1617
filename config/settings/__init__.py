# config/settings/__init__.py
# DJANGO_ENV picks the settings module when DJANGO_SETTINGS_MODULE=config.settings
import os

DJANGO_ENV = os.getenv("DJANGO_ENV", "local").lower()

if DJANGO_ENV in ("prod", "production"):
    from .prod import *  # noqa
elif DJANGO_ENV == "test":
    from .test import *  # noqa
else:
    from .local import *  # noqa
