"""
Django test settings: SQLite in memory instead of MySQL.

Usage:
    python manage.py test --settings=test_settings
    coverage run --source=storefront manage.py test --settings=test_settings
"""

from showroom.settings import *  # noqa: F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DEBUG = False

# Простой пароль хэшер для ускорения тестов
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# Отключаем кэширование в тестах
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.dummy.DummyCache',
    }
}

# Без задержек между повторами чтения
SHOWROOM_READ_RETRY_DELAY = 0

# Минимальное логирование
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': 'ERROR',
    },
}
