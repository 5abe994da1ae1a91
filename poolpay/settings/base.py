import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = Path(__file__).resolve().parent.parent.parent


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, "") or default)
    except ValueError:
        return default


SECRET_KEY = os.getenv("DJANGO_SECRET_KEY", "change-me")
DEBUG = _env_bool("DJANGO_DEBUG")
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "*").split(",") if h.strip()]

INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "payments",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "poolpay.middleware.RequestLogMiddleware",
]

ROOT_URLCONF = "poolpay.urls"
WSGI_APPLICATION = "poolpay.wsgi.application"

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

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": os.getenv("DATABASE_PATH", str(BASE_DIR / "db.sqlite3")),
    }
}

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

LANGUAGE_CODE = "ru-ru"
TIME_ZONE = "Europe/Moscow"
USE_I18N = True
USE_TZ = True

STATIC_URL = "/static/"

# Alfa e-Commerce + FastSale (1C) integration.
# PAY_TTL_MS is kept in milliseconds for compatibility with existing deployments.
PAY = {
    "TTL_SECONDS": _env_int("PAY_TTL_MS", 5 * 60 * 1000) // 1000,
    "MAX_ACTIVE_PER_PHONE": _env_int("PAY_MAX_ACTIVE_PER_PHONE", 3),
    "MAX_ACTIVE_PER_IP": _env_int("PAY_MAX_ACTIVE_PER_IP", 20),
    "RETURN_URL": os.getenv("PAY_RETURN_URL", ""),
    "RETURN_PATH": os.getenv("PAY_RETURN_PATH", "/catalog/public/return_alfa.php"),
    "ADMIN_TOKEN": os.getenv("PAY_ADMIN_TOKEN", ""),
    "ALFA_BASE_URL": os.getenv("ALFA_BASE_URL", ""),
    "ALFA_TOKEN": os.getenv("ALFA_TOKEN", ""),
    "ALFA_USERNAME": os.getenv("ALFA_USERNAME", ""),
    "ALFA_PASSWORD": os.getenv("ALFA_PASSWORD", ""),
    "ALFA_SKIP_SSL_VERIFY": _env_bool("ALFA_SKIP_SSL_VERIFY"),
    "ALFA_TIMEOUT": _env_int("ALFA_TIMEOUT", 20),
    "FASTSALE_ENDPOINT": os.getenv("FASTSALE_ENDPOINT") or os.getenv("FASTSALES_ENDPOINT", ""),
    "CLUB_ID": os.getenv("CLUB_ID", ""),
    "API_KEY": os.getenv("API_KEY", ""),
    "API_USER_TOKEN": os.getenv("API_USER_TOKEN", ""),
    "BASIC_USER": os.getenv("BASIC_USER", ""),
    "BASIC_PASS": os.getenv("BASIC_PASS", ""),
    "FASTSALE_TIMEOUT": _env_int("FASTSALE_TIMEOUT", 20),
}

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "default": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "default"},
    },
    "root": {"handlers": ["console"], "level": LOG_LEVEL},
    "loggers": {
        "django": {"handlers": ["console"], "level": "WARNING", "propagate": False},
    },
}
