"""Django settings for the live request queue API.

Deployment values come from environment variables; defaults suit local
development and the test suite.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get("DJANGO_SECRET_KEY", "dev-only-insecure-key")
DEBUG = os.environ.get("DJANGO_DEBUG", "false").lower() == "true"
ALLOWED_HOSTS = [
    host for host in os.environ.get("DJANGO_ALLOWED_HOSTS", "localhost").split(",") if host
]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "live.apps.LiveConfig",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
]

ROOT_URLCONF = "config.urls"
WSGI_APPLICATION = "config.wsgi.application"
ASGI_APPLICATION = "config.asgi.application"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

if os.environ.get("DJANGO_DB_ENGINE", "sqlite").lower() == "postgresql":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("DJANGO_DB_NAME", "live_queue"),
            "USER": os.environ.get("DJANGO_DB_USER", ""),
            "PASSWORD": os.environ.get("DJANGO_DB_PASSWORD", ""),
            "HOST": os.environ.get("DJANGO_DB_HOST", ""),
            "PORT": os.environ.get("DJANGO_DB_PORT", ""),
        }
    }
else:
    # SQLite ignores select_for_update; IMMEDIATE takes the write lock at the
    # start of every atomic block so concurrent appends queue instead of
    # failing on lock upgrade
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": os.environ.get("DJANGO_DB_PATH", str(BASE_DIR / "db.sqlite3")),
            "OPTIONS": {
                "transaction_mode": "IMMEDIATE",
                "timeout": 20,
            },
            # A file rather than shared memory, so threads wait on the lock
            "TEST": {"NAME": str(BASE_DIR / "test_db.sqlite3")},
        }
    }

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "live-queue",
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"
STATIC_URL = "static/"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [
        "rest_framework.authentication.SessionAuthentication",
    ],
    "EXCEPTION_HANDLER": "live.handlers.errors.domain_exception_handler",
}

LIVE_QUEUE = {
    "DEFAULT_REQUEST_CAP": int(os.environ.get("LIVE_DEFAULT_REQUEST_CAP", "5")),
    "DEFAULT_SESSION_MINUTES": int(os.environ.get("LIVE_DEFAULT_SESSION_MINUTES", "60")),
    "OFFLINE_GRACE_SECONDS": float(os.environ.get("LIVE_OFFLINE_GRACE_SECONDS", "5")),
    "TICK_SECONDS": float(os.environ.get("LIVE_TICK_SECONDS", "1")),
    "PLATFORM_COMMISSION": os.environ.get("LIVE_PLATFORM_COMMISSION", "0.20"),
    "OFFLINE_CLEARS_REQUESTS": os.environ.get("LIVE_OFFLINE_CLEARS_REQUESTS", "false").lower()
    == "true",
    "OFFLINE_RESETS_TAGS": os.environ.get("LIVE_OFFLINE_RESETS_TAGS", "true").lower()
    == "true",
}

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "default",
        },
    },
    "loggers": {
        "live": {"level": LOG_LEVEL},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
}
