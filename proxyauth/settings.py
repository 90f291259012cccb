import os
import sys
from pathlib import Path
import environ

# Initialize environment variables
env = environ.Env()

# Reading .env file
environ.Env.read_env(".env")


# Helper function to read Docker secrets from files
def read_secret(env_var_name, file_env_var_name, default=""):
    """Read secret from file if *_FILE env var exists, otherwise from env var."""
    secret_file = os.environ.get(file_env_var_name)
    if secret_file and os.path.exists(secret_file):
        with open(secret_file, 'r') as f:
            return f.read().strip()
    return env(env_var_name, default=default)


# Build paths inside the project like this: BASE_DIR / 'subdir'.
BASE_DIR = Path(__file__).resolve().parent.parent
CONFIG_DIR = BASE_DIR / "proxyauth" / "config"

# SECURITY WARNING: keep the secret key used in production secret!
SECRET_KEY = read_secret("SECRET_KEY", "SECRET_KEY_FILE", default="unsafe-secret-key")

# SECURITY WARNING: don't run with debug turned on in production!
DEBUG = env.bool("DEBUG", default=False)

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1"])

TESTING = "test" in sys.argv or os.environ.get('TESTING', 'False').lower() == 'true'


# Application definition
INSTALLED_APPS = [
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "proxyauth",
]

MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "proxyauth.middleware.proxy_auth.ProxyAuthMiddleware",  # Trust REMOTE_USER from the upstream proxy
]

# Proxies that forward the identity as a "Remote-User" header instead of REMOTE_USER
if env.bool("PROXYAUTH_USE_HTTP_HEADER", default=False):
    MIDDLEWARE[MIDDLEWARE.index("proxyauth.middleware.proxy_auth.ProxyAuthMiddleware")] = (
        "proxyauth.middleware.proxy_auth.HttpProxyAuthMiddleware"
    )

AUTHENTICATION_BACKENDS = [
    "django.contrib.auth.backends.ModelBackend",
]

# ==========================================
# proxyauth configuration
# ==========================================

# Flat key/value file (create.users, header.fullname, ...), read once at startup
PROXYAUTH_CONFIG_FILE = env("PROXYAUTH_CONFIG_FILE", default=str(CONFIG_DIR / "proxyauth.yml"))

# Keys set here override the file
PROXYAUTH = {}

ROOT_URLCONF = "proxyauth.urls"

APPEND_SLASH = False

# Database
# https://docs.djangoproject.com/en/5.1/ref/settings/#databases

DATABASES = {
    "default": {
        "NAME": env("DB_NAME", default=str(BASE_DIR / "proxyauth.sqlite3")),
        "ENGINE": env("DB_ENGINE", default="django.db.backends.sqlite3"),
        "HOST": env("DB_HOST", default=""),
        "PORT": env("DB_PORT", default=""),
        "USER": env("DB_USER", default=""),
        "PASSWORD": read_secret("DB_PASSWORD", "DATABASE_PASSWORD_FILE", default=""),
        "CONN_MAX_AGE": 0,
        "CONN_HEALTH_CHECKS": True,
    }
}

# Session cookie settings
SESSION_COOKIE_AGE = env.int("SESSION_COOKIE_AGE", default=3600)
SESSION_COOKIE_HTTPONLY = True  # Security: prevent JavaScript access
SESSION_COOKIE_SECURE = env.bool("SESSION_COOKIE_SECURE", default=not DEBUG)  # HTTPS only in production

LOGOUT_REDIRECT_URL = env("LOGOUT_REDIRECT_URL", default="/")

LANGUAGE_CODE = "en-us"

TIME_ZONE = "UTC"

USE_I18N = True

USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"


# ==========================================
# LOGGING CONFIGURATION
# ==========================================

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'filters': {
        'sanitize': {
            '()': 'proxyauth.utils.log_sanitizer.SanitizingFilter',
        },
    },
    'formatters': {
        'verbose': {
            'format': '{levelname} {asctime} {module} {process:d} {thread:d} {message}',
            'style': '{',
        },
        'simple': {
            'format': '{levelname} {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple' if TESTING else 'verbose',
            'filters': ['sanitize'],
        },
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null' if TESTING else 'console'],
        'level': 'CRITICAL' if TESTING else 'INFO',
    },
    'loggers': {
        'django': {
            'handlers': ['null' if TESTING else 'console'],
            'level': 'CRITICAL' if TESTING else 'INFO',
            'propagate': False,
        },
        'django.db.backends': {
            'handlers': ['null'],
            'level': 'CRITICAL',
            'propagate': False,
        },
        'proxyauth': {
            'handlers': ['null' if TESTING else 'console'],
            'level': 'CRITICAL' if TESTING else env('PROXYAUTH_LOG_LEVEL', default='INFO'),
            'propagate': False,
        },
    }
}
