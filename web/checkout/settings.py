"""Django settings for the checkout service.

Everything deployment-specific (gateway credentials, frontend URLs,
database) is read from the environment. Gateway options are collected in
``PAYMENTS`` and validated at startup by ``apps.orders.config``.
"""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = [h for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost").split(",") if h]

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "apps.orders",
    "apps.monitoring",
]

MIDDLEWARE = [
    "checkout.middleware.RequestIdMiddleware",
    "checkout.middleware.ApiSizeLimitMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.middleware.common.CommonMiddleware",
]

ROOT_URLCONF = "checkout.urls"
WSGI_APPLICATION = "checkout.wsgi.application"

if os.getenv("DB_HOST"):
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.postgresql",
            "HOST": os.getenv("DB_HOST"),
            "PORT": os.getenv("DB_PORT", "5432"),
            "NAME": os.getenv("DB_NAME", "orders"),
            "USER": os.getenv("DB_USER", "app"),
            "PASSWORD": os.getenv("DB_PASSWORD", ""),
            "CONN_MAX_AGE": int(os.getenv("DB_CONN_MAX_AGE", "60")),
            "OPTIONS": {"connect_timeout": int(os.getenv("DB_CONNECT_TIMEOUT", "10"))},
        }
    }
else:
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"
USE_TZ = True
TIME_ZONE = "UTC"

REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_THROTTLE_RATES": {
        "orders_create": os.getenv("THROTTLE_ORDERS_CREATE", "30/min"),
        "orders_detail": os.getenv("THROTTLE_ORDERS_DETAIL", "120/min"),
    },
}

# Gateway clients
USE_HTTP_ADAPTERS = _env_bool("USE_HTTP_ADAPTERS", "true")
HTTP_TIMEOUT_SECS = float(os.getenv("HTTP_TIMEOUT_SECS", "10"))

PAYMENTS = {
    "PROVIDER": os.getenv("PAYMENT_PROVIDER", "phonepe"),
    "MERCHANT_ID": os.getenv("PAYMENT_MERCHANT_ID", ""),
    "APP_ID": os.getenv("PAYMENT_APP_ID", ""),
    "SECRET": os.getenv("PAYMENT_SECRET", ""),
    "KEY_INDEX": int(os.getenv("PAYMENT_KEY_INDEX", "1")),
    "BASE_URL": os.getenv("PAYMENT_BASE_URL", ""),
    "API_VERSION": os.getenv("PAYMENT_API_VERSION", "2022-01-01"),
    "INSTRUMENT": os.getenv("PAYMENT_INSTRUMENT", "PAY_PAGE"),
    "WEBHOOK_SECRET": os.getenv("PAYMENT_WEBHOOK_SECRET", ""),
    "CURRENCY": os.getenv("PAYMENT_CURRENCY", "INR"),
    "MIN_AMOUNT": os.getenv("PAYMENT_MIN_AMOUNT", "1"),
    "SUCCESS_URL": os.getenv("FRONTEND_SUCCESS_URL", ""),
    "FAILURE_URL": os.getenv("FRONTEND_FAILURE_URL", ""),
    "CALLBACK_BASE_URL": os.getenv("CALLBACK_BASE_URL", ""),
    "TIMEOUT_SECS": HTTP_TIMEOUT_SECS,
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "checkout.logging_filters.RequestIdFilter"},
    },
    "formatters": {
        "json": {
            "()": "pythonjsonlogger.jsonlogger.JsonFormatter",
            "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s %(request_id)s",
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "formatter": "json",
            "filters": ["request_id"],
        },
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django.request": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
