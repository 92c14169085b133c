"""
Django settings for core_backend project.

Deployment values are read from environment variables; every value has a
development default so the test suite runs without a .env file.
"""

import os
from datetime import timedelta
from pathlib import Path

from celery.schedules import crontab

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    return os.environ.get(name, str(default)).lower() in ("1", "true", "yes", "on")


def env_int(name, default):
    value = os.environ.get(name)
    if value in (None, ""):
        return default
    return int(value)


SECRET_KEY = os.environ.get("SECRET_KEY", "django-insecure-delivery-engine-dev-key")
DEBUG = env_bool("DEBUG", True)
ALLOWED_HOSTS = os.environ.get("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",")

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Third-party
    "rest_framework",
    "rest_framework_simplejwt",
    "django_filters",
    # Local
    "core_backend",
    "users",
    "orders",
    "subscriptions",
    "deliveries",
    "pause_skip",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "core_backend.urls"

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

WSGI_APPLICATION = "core_backend.wsgi.application"

if os.environ.get("DATABASE_NAME"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "NAME": os.environ.get("DATABASE_NAME"),
            "USER": os.environ.get("DATABASE_USER", ""),
            "PASSWORD": os.environ.get("DATABASE_PASSWORD", ""),
            "HOST": os.environ.get("DATABASE_HOST", "localhost"),
            "PORT": os.environ.get("DATABASE_PORT", "5432"),
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

AUTH_USER_MODEL = "users.User"

AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
]

LANGUAGE_CODE = "en-us"
# Operational local time: "today" and delivery slots are evaluated here
TIME_ZONE = os.environ.get("TIME_ZONE", "Asia/Kolkata")
USE_I18N = True
USE_TZ = True

STATIC_URL = "static/"
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# ============================================================================
# REST FRAMEWORK
# ============================================================================

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (
        "rest_framework_simplejwt.authentication.JWTAuthentication",
        "rest_framework.authentication.SessionAuthentication",
    ),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.IsAuthenticated",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "core_backend.pagination.StandardPagination",
    "PAGE_SIZE": 25,
    "EXCEPTION_HANDLER": "core_backend.exceptions.engine_exception_handler",
}

SIMPLE_JWT = {
    "ACCESS_TOKEN_LIFETIME": timedelta(minutes=env_int("JWT_ACCESS_MINUTES", 60)),
    "REFRESH_TOKEN_LIFETIME": timedelta(days=env_int("JWT_REFRESH_DAYS", 7)),
    "ROTATE_REFRESH_TOKENS": True,
}

# ============================================================================
# DELIVERY ENGINE
# ============================================================================

SKIP_REQUEST_CUTOFF_MINUTES = env_int("SKIP_REQUEST_CUTOFF_MINUTES", 120)

# Older deployments configured the pause cutoff in hours
_pause_cutoff_hours = os.environ.get("PAUSE_REQUEST_CUTOFF_HOURS")
PAUSE_REQUEST_CUTOFF_MINUTES = env_int(
    "PAUSE_REQUEST_CUTOFF_MINUTES",
    int(float(_pause_cutoff_hours) * 60) if _pause_cutoff_hours else 120,
)

SUBSCRIPTION_SERVINGS_BY_CADENCE = {
    "weekly": env_int("SUBSCRIPTION_WEEKLY_SERVINGS", 5),
    "monthly": env_int("SUBSCRIPTION_MONTHLY_SERVINGS", 20),
}

DELIVERY_DEFAULT_TIME = os.environ.get("DELIVERY_DEFAULT_TIME", "12:00")
DELIVERY_HORIZON_DAYS = env_int("DELIVERY_HORIZON_DAYS", 1)
PROJECTION_LOOKAHEAD_DAYS = 366
DELIVERY_LIST_MAX_RANGE_DAYS = env_int("DELIVERY_LIST_MAX_RANGE_DAYS", 31)

# ============================================================================
# CELERY
# ============================================================================

CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)
CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_RESULT_SERIALIZER = "json"
CELERY_TIMEZONE = TIME_ZONE
CELERY_TASK_ALWAYS_EAGER = env_bool("CELERY_TASK_ALWAYS_EAGER", False)

CELERY_BEAT_SCHEDULE = {
    "extend-delivery-horizons": {
        "task": "subscriptions.tasks.extend_delivery_horizons",
        "schedule": crontab(hour=0, minute=30),
    },
}

# ============================================================================
# LOGGING
# ============================================================================

LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "{levelname} {asctime} {name} {message}",
            "style": "{",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "root": {
        "handlers": ["console"],
        "level": "WARNING",
    },
    "loggers": {
        "django": {"handlers": ["console"], "level": "INFO", "propagate": False},
        "orders": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "subscriptions": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "deliveries": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "pause_skip": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
        "core_backend": {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False},
    },
}
