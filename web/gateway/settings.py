"""Django settings for the eSIM order gateway.

Values come from the environment (a local ``.env`` file is loaded first).
The gateway keeps no relational database: orders and reference data live
in DynamoDB, reached through ``apps.orders.aws_adapters``.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> list[str]:
    return [v.strip() for v in os.getenv(name, default).split(",") if v.strip()]


SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-secret-key")
DEBUG = _env_bool("DEBUG", False)
ALLOWED_HOSTS = _env_list("ALLOWED_HOSTS", "*")

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "rest_framework",
    "apps.monitoring",
    "apps.orders",
    "apps.catalog",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "gateway.middleware.RequestIdMiddleware",
    "gateway.middleware.ApiSizeLimitMiddleware",
]

ROOT_URLCONF = "gateway.urls"
WSGI_APPLICATION = "gateway.wsgi.application"
APPEND_SLASH = False

# No relational database; DynamoDB is accessed through boto3.
DATABASES = {}

USE_TZ = True
TIME_ZONE = "UTC"

REST_FRAMEWORK = {
    "DEFAULT_RENDERER_CLASSES": ["rest_framework.renderers.JSONRenderer"],
    "DEFAULT_PARSER_CLASSES": ["rest_framework.parsers.JSONParser"],
    "DEFAULT_AUTHENTICATION_CLASSES": [],
    "DEFAULT_PERMISSION_CLASSES": ["rest_framework.permissions.AllowAny"],
    "UNAUTHENTICATED_USER": None,
    "EXCEPTION_HANDLER": "apps.orders.responses.api_exception_handler",
    "DEFAULT_THROTTLE_CLASSES": ["rest_framework.throttling.ScopedRateThrottle"],
    "DEFAULT_THROTTLE_RATES": {
        "orders_read": os.getenv("THROTTLE_ORDERS_READ", "300/min"),
        "orders_write": os.getenv("THROTTLE_ORDERS_WRITE", "60/min"),
        "catalog_read": os.getenv("THROTTLE_CATALOG_READ", "600/min"),
    },
}

# ---- AWS ----
AWS_REGION = os.getenv("AWS_REGION", "ap-southeast-1")
ORDERS_TABLE_NAME = os.getenv("ORDERS_TABLE_NAME", "Order")
PRODUCT_MAPPING_TABLE_NAME = os.getenv("PRODUCT_MAPPING_TABLE_NAME", "ProductMapping")
REGION_TABLE_NAME = os.getenv("REGION_TABLE_NAME", "Region")
PROMO_CODE_TABLE_NAME = os.getenv("PROMO_CODE_TABLE_NAME", "PromoCode")
ORDER_STATUS_CREATED_AT_INDEX = os.getenv("ORDER_STATUS_CREATED_AT_INDEX", "status-createdAt-index")
TASK_FUNCTION_PREFIX = os.getenv("TASK_FUNCTION_PREFIX", "")

# Statuses listed by /v2/in-progress/orders, queried in this order.
IN_PROGRESS_STATUSES = _env_list("IN_PROGRESS_STATUSES", "CREATED,PAID,ESIM_ORDERED,ESIM_FULFILLED")

# False wires the in-process stubs instead of DynamoDB/Midtrans/Lambda.
USE_AWS_ADAPTERS = _env_bool("USE_AWS_ADAPTERS", True)

# ---- Midtrans ----
MIDTRANS_BASE_URL = os.getenv("MIDTRANS_BASE_URL", "https://api.sandbox.midtrans.com")
MIDTRANS_SERVER_KEY = os.getenv("MIDTRANS_SERVER_KEY", "")
MIDTRANS_RETRY_MAX = int(os.getenv("MIDTRANS_RETRY_MAX", "1"))

# ---- Outbound HTTP ----
HTTP_TIMEOUT_SECS = float(os.getenv("HTTP_TIMEOUT_SECS", "5"))
HTTP_RETRY_BACKOFF_BASE = float(os.getenv("HTTP_RETRY_BACKOFF_BASE", "0.15"))
HTTP_RETRY_MAX_SLEEP = float(os.getenv("HTTP_RETRY_MAX_SLEEP", "0.5"))
HTTP_CIRCUIT_FAIL_THRESHOLD = int(os.getenv("HTTP_CIRCUIT_FAIL_THRESHOLD", "5"))
HTTP_CIRCUIT_RESET_TIMEOUT = float(os.getenv("HTTP_CIRCUIT_RESET_TIMEOUT", "30"))

# ---- Logging ----
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "request_id": {"()": "gateway.logging_filters.RequestIdFilter"},
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
        "gateway": {"level": LOG_LEVEL, "propagate": True},
        "botocore": {"level": "WARNING"},
        "httpx": {"level": "WARNING"},
    },
}
