"""
Base Django settings for the Showroom storefront.

Environment-driven: values are read from ``os.environ`` (``manage.py`` loads a
``.env`` file first through python-dotenv).
"""

from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent


def _env_bool(name, default):
    return os.environ.get(name, str(default)).lower() in ('1', 'true', 'yes')


SECRET_KEY = os.environ.get('SECRET_KEY', 'django-insecure-showroom-dev-key')
DEBUG = _env_bool('DEBUG', True)

_allowed_hosts_env = os.environ.get('ALLOWED_HOSTS', '')
ALLOWED_HOSTS = [h.strip() for h in _allowed_hosts_env.split(',') if h.strip()] or [
    'localhost',
    '127.0.0.1',
    'testserver',
]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'rest_framework',
    'storefront',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'showroom.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'passenger_wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TIME_ZONE', 'Asia/Kolkata')
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'
STATIC_ROOT = BASE_DIR / 'staticfiles'
MEDIA_URL = '/media/'
MEDIA_ROOT = BASE_DIR / 'media'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'showroom-default',
        'TIMEOUT': int(os.environ.get('CACHE_DEFAULT_TIMEOUT', '600')),
    }
}

REST_FRAMEWORK = {
    'DEFAULT_PERMISSION_CLASSES': [
        'rest_framework.permissions.AllowAny',
    ],
    'EXCEPTION_HANDLER': 'storefront.api_errors.catalog_exception_handler',
    'DEFAULT_PAGINATION_CLASS': None,
}

# ===== МЕРЧАНДАЙЗИНГ =====

# Максимум категорий на главной (showcase)
SHOWROOM_MAX_SHOWCASE_CATEGORIES = int(os.environ.get('SHOWROOM_MAX_SHOWCASE_CATEGORIES', '6'))
# Лимит избранных товаров для новой категории
SHOWROOM_DEFAULT_FEATURED_LIMIT = int(os.environ.get('SHOWROOM_DEFAULT_FEATURED_LIMIT', '4'))
# Пакетная запись одной транзакцией; False = по одному документу (best-effort)
SHOWROOM_ATOMIC_BATCHES = _env_bool('SHOWROOM_ATOMIC_BATCHES', True)
# Повторы чтения с экспоненциальной задержкой. Запись не повторяется.
SHOWROOM_READ_RETRIES = int(os.environ.get('SHOWROOM_READ_RETRIES', '3'))
SHOWROOM_READ_RETRY_DELAY = float(os.environ.get('SHOWROOM_READ_RETRY_DELAY', '0.05'))
SHOWROOM_READ_RETRY_BACKOFF = float(os.environ.get('SHOWROOM_READ_RETRY_BACKOFF', '2'))
SHOWROOM_CACHE_TIMEOUT = int(os.environ.get('SHOWROOM_CACHE_TIMEOUT', '300'))

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'loggers': {
        'django': {
            'handlers': ['console'],
            'level': os.environ.get('DJANGO_LOG_LEVEL', 'INFO'),
        },
        'storefront': {
            'handlers': ['console'],
            'level': os.environ.get('STOREFRONT_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
