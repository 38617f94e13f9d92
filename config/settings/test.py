# config/settings/test.py
from .base import *  # noqa

SECRET_KEY = "test-secret-key-not-for-production"
DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

MEDIA_ROOT = str(BASE_DIR / ".test-media")

LOGGING["loggers"]["mt_core"]["level"] = "WARNING"
