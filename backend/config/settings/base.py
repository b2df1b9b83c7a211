"""
Base Django settings for the Crewvar auth backend.

Shared configuration for all environments.
"""

from pathlib import Path

from pydantic_settings import BaseSettings

from apps.core.logging import configure_logging


class Settings(BaseSettings):
    """Environment-based configuration using pydantic-settings."""

    SECRET_KEY: str = "django-insecure-change-me-in-production"
    DEBUG: bool = False
    ALLOWED_HOSTS: str = ""

    # Database
    DB_NAME: str = "crewvar"
    DB_USER: str = "postgres"
    DB_PASSWORD: str = "postgres"
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"

    # Logging
    LOG_JSON: bool = True
    LOG_LEVEL: str = "INFO"

    # AWS SES (login code delivery)
    AWS_SES_REGION: str = "us-east-1"
    AWS_SES_FROM_EMAIL: str = ""
    OTP_EMAIL_APP_NAME: str = "Crewvar"

    # OTP exchange
    OTP_TTL_SECONDS: int = 300
    OTP_MAX_ATTEMPTS: int = 5
    OTP_RESEND_COOLDOWN_SECONDS: int = 60
    OTP_RETENTION_DAYS: int = 30

    # Custom token / session token signing (RS256)
    AUTH_JWT_PRIVATE_KEY: str = ""
    AUTH_JWT_KEY_ID: str = "crewvar-auth-1"
    AUTH_JWT_ISSUER: str = "crewvar-auth"
    CUSTOM_TOKEN_EXPIRY_SECONDS: int = 300
    SESSION_TOKEN_EXPIRY_SECONDS: int = 3600

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()

# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent.parent

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = settings.SECRET_KEY

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = settings.DEBUG

ALLOWED_HOSTS = [h.strip() for h in settings.ALLOWED_HOSTS.split(",") if h.strip()]

# Application definition
INSTALLED_APPS = [
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    # Local apps
    "apps.core",
    "apps.accounts",
    "apps.otp",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
    "apps.core.middleware.RequestContextMiddleware",
    "apps.core.middleware.SessionTokenAuthMiddleware",
]

ROOT_URLCONF = "config.urls"

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

WSGI_APPLICATION = "config.wsgi.application"

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.postgresql",
        "NAME": settings.DB_NAME,
        "USER": settings.DB_USER,
        "PASSWORD": settings.DB_PASSWORD,
        "HOST": settings.DB_HOST,
        "PORT": settings.DB_PORT,
    }
}

AUTH_USER_MODEL = "accounts.User"

# Internationalization
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

# Static files (CSS, JavaScript, Images)
STATIC_URL = "static/"

# Default primary key field type
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# Logging is handled by structlog; Django's dictConfig is disabled.
LOGGING_CONFIG = None
configure_logging(json_format=settings.LOG_JSON, log_level=settings.LOG_LEVEL)

# Login code delivery
AWS_SES_REGION = settings.AWS_SES_REGION
AWS_SES_FROM_EMAIL = settings.AWS_SES_FROM_EMAIL
OTP_EMAIL_APP_NAME = settings.OTP_EMAIL_APP_NAME
OTP_EMAIL_CONSOLE_FALLBACK = False

# OTP exchange
OTP_TTL_SECONDS = settings.OTP_TTL_SECONDS
OTP_MAX_ATTEMPTS = settings.OTP_MAX_ATTEMPTS
OTP_RESEND_COOLDOWN_SECONDS = settings.OTP_RESEND_COOLDOWN_SECONDS
OTP_RETENTION_DAYS = settings.OTP_RETENTION_DAYS

# Token signing
AUTH_JWT_PRIVATE_KEY = settings.AUTH_JWT_PRIVATE_KEY
AUTH_JWT_KEY_ID = settings.AUTH_JWT_KEY_ID
AUTH_JWT_ISSUER = settings.AUTH_JWT_ISSUER
CUSTOM_TOKEN_EXPIRY_SECONDS = settings.CUSTOM_TOKEN_EXPIRY_SECONDS
SESSION_TOKEN_EXPIRY_SECONDS = settings.SESSION_TOKEN_EXPIRY_SECONDS
