import os

import sentry_sdk
import structlog
from django.core.management.utils import get_random_secret_key
from sentry_sdk.integrations.django import DjangoIntegration

from longterm.version import get_longterm_version

DEFAULT_AUTO_FIELD = "django.db.models.AutoField"

# Build paths inside the project like this: os.path.join(SITE_ROOT_DIR, ...)
LONGTERM_APP_DIR = os.path.abspath(os.path.dirname(__file__))
SITE_ROOT_DIR = os.path.dirname(LONGTERM_APP_DIR)

SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", get_random_secret_key())

LONGTERM_ENVIRONMENT = os.environ.get("LONGTERM_ENVIRONMENT", "development")

ALLOWED_HOSTS = ["*"]

DEBUG = False

LANGUAGE_CODE = "en-us"
TIME_ZONE = "Europe/Berlin"
USE_I18N = True
USE_TZ = True

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": "longterm",
        "USER": "longterm",
        "PASSWORD": os.getenv("POSTGRESQL_PW"),
        "HOST": os.getenv("POSTGRESQL_HOST", "localhost"),
        "PORT": os.getenv("POSTGRESQL_PORT", "5432"),
        "CONN_MAX_AGE": 0,
    }
}

INSTALLED_APPS = [
    "django.contrib.contenttypes",
    "django.contrib.auth",
    "configuration",
    "ingest.apps.IngestConfig",
]

REDIS_ADDRESS = os.environ.get("REDIS_ADDRESS", "localhost")
REDIS_PORT = os.environ.get("REDIS_PORT", "")
if REDIS_PORT.isdigit():
    REDIS_PORT = int(REDIS_PORT)
else:
    REDIS_PORT = 6379

if REDIS_ADDRESS and REDIS_PORT:
    CACHES = {
        "default": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": f"redis://{REDIS_ADDRESS}:{REDIS_PORT}/1",
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
        },
        "configuration_cache": {
            "BACKEND": "django_redis.cache.RedisCache",
            "LOCATION": f"redis://{REDIS_ADDRESS}:{REDIS_PORT}/3",
            "OPTIONS": {
                "CLIENT_CLASS": "django_redis.client.DefaultClient",
            },
        },
    }
else:
    CACHES = {
        "default": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        },
        "configuration_cache": {
            "BACKEND": "django.core.cache.backends.locmem.LocMemCache"
        },
    }

CELERY_BROKER_URL = f"redis://{REDIS_ADDRESS}:{REDIS_PORT}/0"
CELERY_RESULT_BACKEND = f"redis://{REDIS_ADDRESS}:{REDIS_PORT}/0"

CELERY_ACCEPT_CONTENT = ["json"]
CELERY_TASK_SERIALIZER = "json"
CELERY_IMPORTS = ("ingest.tasks",)

# Sagas are long running and must not be handed to a second worker while the
# first one is still busy with them
CELERY_TASK_ACKS_LATE = False
CELERY_WORKER_PREFETCH_MULTIPLIER = 1
CELERY_WORKER_CONCURRENCY = int(os.environ.get("INGEST_WORKER_CONCURRENCY", 4))

CELERY_BROKER_HEARTBEAT = 0
CELERY_BROKER_CONNECTION_RETRY = True
CELERY_BROKER_CONNECTION_RETRY_ON_STARTUP = True
CELERY_BROKER_TRANSPORT_OPTIONS = {
    "confirm_publish": True,
    "max_retries": 3,
    "interval_start": 0,
    "interval_step": 0.2,
    "interval_max": 0.5,
}

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "celery_task_id": {"()": "ingest.logging.CeleryTaskIDFilter"},
    },
    "formatters": {
        "long": {
            "format": "[{asctime} {levelname} {name}:{lineno}{task_id}] {message}",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "style": "{",
        },
        "short": {
            "format": "[{levelname} {name}] {message}",
            "datefmt": "%Y-%m-%dT%H:%M:%S",
            "style": "{",
        },
        "structlog_json": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.processors.JSONRenderer(),
        },
        "structlog_console": {
            "()": structlog.stdlib.ProcessorFormatter,
            "processor": structlog.dev.ConsoleRenderer(),
        },
    },
    "handlers": {
        "stream": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "long",
            "filters": ["celery_task_id"],
        },
        "null": {"level": "INFO", "class": "logging.NullHandler"},
        "file": {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "level": "INFO",
            "formatter": "long",
            "filters": ["celery_task_id"],
            "filename": f"{SITE_ROOT_DIR}/logs/longterm.log",
            "when": "H",
            "interval": 3,
            "backupCount": 16,
        },
        "celery": {
            "level": "INFO",
            "class": "logging.handlers.RotatingFileHandler",
            "filename": f"{SITE_ROOT_DIR}/logs/celery.log",
            "formatter": "long",
            "filters": ["celery_task_id"],
            "maxBytes": 1024 * 1024 * 100,  # 100 mb
        },
        "structlog_file": {
            "class": "logging.handlers.TimedRotatingFileHandler",
            "level": "DEBUG",
            "formatter": "structlog_json",
            "filename": f"{SITE_ROOT_DIR}/logs/longterm-json.log",
            "when": "H",
            "interval": 3,
            "backupCount": 16,
        },
        "structlog_console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "structlog_console",
        },
    },
    "loggers": {
        "django": {"handlers": ["file"], "level": "INFO"},
        "celery": {"handlers": ["celery"], "level": "INFO"},
        "longterm": {"handlers": ["file"], "level": "INFO"},
        "ingest": {"handlers": ["file", "celery"], "level": "INFO"},
        "structlog": {
            "handlers": ["structlog_file"],
            "level": "DEBUG",
            "propagate": True,
        },
    },
}

structlog.configure(
    processors=[
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


################################################################################
# Django-specific settings above
################################################################################

SENTRY_BACKEND_DSN = os.environ.get("SENTRY_BACKEND_DSN", "")

APPLICATION_VERSION = get_longterm_version()

sentry_sdk.init(
    dsn=SENTRY_BACKEND_DSN,
    environment=LONGTERM_ENVIRONMENT,
    release=APPLICATION_VERSION,
    integrations=[DjangoIntegration()],
)

CONFIGURATION_CACHE_TIMEOUT = 3600  # One hour

# Ingest settings

#: Base URL under which stored packages become retrievable; used to build the
#: URL registered with the identifier service
INGEST_PUBLIC_BASE_URL = os.environ.get(
    "INGEST_PUBLIC_BASE_URL", "http://localhost:8080"
)

#: Fixed-delay policy for calls on the critical path (minting, storage,
#: identifier updates)
INGEST_RETRY_POLICY = {
    "DELAY": 10,
    "MAX_RETRIES": 3,
}

#: Exponential backoff used while waiting for a stored package to become
#: retrievable before the indexer is told about it
INGEST_POLLING_POLICY = {
    "MIN_DELAY": 5,
    "MAX_DELAY": 120,
    "MAX_DURATION": 10 * 60,
}

INGEST_IDENTIFIER_SERVICE = "ingest.services.identifier.PidServiceClient"
INGEST_STORAGE_SERVICE = "ingest.services.storage.ArchiveStorageClient"
INGEST_INDEXER_SERVICE = "ingest.services.indexer.WebNotifierClient"

INGEST_PID_SERVICE = {
    "URL": os.environ.get("PID_SERVICE_URL", "http://localhost:8081/api/handles"),
    "PREFIX": os.environ.get("PID_SERVICE_PREFIX", "21.T11998"),
    "USERNAME": os.environ.get("PID_SERVICE_USERNAME", ""),
    "PASSWORD": os.environ.get("PID_SERVICE_PASSWORD", ""),
    "TIMEOUT": 30,
}

INGEST_ARCHIVE_STORAGE = {
    "URL": os.environ.get("ARCHIVE_STORAGE_URL", "http://localhost:8082/v3"),
    "ONLINE_VAULT": os.environ.get("ARCHIVE_STORAGE_ONLINE_VAULT", "online"),
    "OFFLINE_VAULT": os.environ.get("ARCHIVE_STORAGE_OFFLINE_VAULT", "offline"),
    "USERNAME": os.environ.get("ARCHIVE_STORAGE_USERNAME", ""),
    "PASSWORD": os.environ.get("ARCHIVE_STORAGE_PASSWORD", ""),
    # Serves stored files by identifier: <EXPORT_URL>/<identifier>/<path>
    "EXPORT_URL": os.environ.get(
        "ARCHIVE_STORAGE_EXPORT_URL", "http://localhost:8082/v3/export"
    ),
    "TIMEOUT": 60,
}

INGEST_WEB_NOTIFIER = {
    "URL": os.environ.get("WEB_NOTIFIER_URL", "http://localhost:8083/api/indexer"),
    "TIMEOUT": 30,
}
