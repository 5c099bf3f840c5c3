"""
Django settings for the AcadPulse backend.

Every deploy-specific value comes from the environment (optionally a .env
file next to manage.py).
"""

import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent.parent
load_dotenv(BASE_DIR / '.env')


def env_bool(name, default=False):
    return os.getenv(name, str(default)).strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'django-insecure-change-me')
DEBUG = env_bool('DJANGO_DEBUG', False)
ALLOWED_HOSTS = [h for h in os.getenv('DJANGO_ALLOWED_HOSTS', 'localhost,127.0.0.1').split(',') if h]

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'rest_framework',
    'users',
    'classes',
    'tasks',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.middleware.common.CommonMiddleware',
]

ROOT_URLCONF = 'pulsehome.urls'
WSGI_APPLICATION = 'pulsehome.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': os.getenv('DATABASE_PATH', str(BASE_DIR / 'db.sqlite3')),
    }
}

AUTH_USER_MODEL = 'users.CustomUser'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator'},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

# --------------------------------------------------------------------------
# REST framework / JWT
# --------------------------------------------------------------------------
REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=int(os.getenv('JWT_ACCESS_MINUTES', '60'))),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
}

# --------------------------------------------------------------------------
# Cache (Redis in production, in-process otherwise)
# --------------------------------------------------------------------------
REDIS_URL = os.getenv('REDIS_URL')
if REDIS_URL:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.redis.RedisCache',
            'LOCATION': REDIS_URL,
        }
    }
else:
    CACHES = {
        'default': {
            'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        }
    }

AI_CACHE_TTL = int(os.getenv('AI_CACHE_TTL', '86400'))

# --------------------------------------------------------------------------
# Celery
# --------------------------------------------------------------------------
CELERY_BROKER_URL = os.getenv('CELERY_BROKER_URL', REDIS_URL or 'redis://localhost:6379/0')
CELERY_TASK_ALWAYS_EAGER = env_bool('CELERY_TASK_ALWAYS_EAGER', False)
CELERY_TASK_SERIALIZER = 'json'
CELERY_ACCEPT_CONTENT = ['json']
CELERY_TIMEZONE = TIME_ZONE
# Picks up tasks whose scoring job was lost (worker down, broker restart).
# Tasks younger than one interval are left to their own job.
PULSE_PENDING_SWEEP_SECONDS = int(os.getenv('PULSE_PENDING_SWEEP_SECONDS', '900'))
CELERY_BEAT_SCHEDULE = {
    'score-pending-tasks': {
        'task': 'tasks.pulse_engine.celery_tasks.score_pending_tasks',
        'schedule': float(PULSE_PENDING_SWEEP_SECONDS),
    },
}

# --------------------------------------------------------------------------
# Pulse engine
# --------------------------------------------------------------------------
OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
PULSE_PRIMARY_MODEL = os.getenv('PULSE_PRIMARY_MODEL', 'gpt-4o')
PULSE_SECONDARY_MODEL = os.getenv('PULSE_SECONDARY_MODEL', 'gpt-4o-mini')
PULSE_ORACLE_TIMEOUT = float(os.getenv('PULSE_ORACLE_TIMEOUT', '10'))
PULSE_WINDOW_PAST_DAYS = int(os.getenv('PULSE_WINDOW_PAST_DAYS', '7'))
PULSE_WINDOW_FUTURE_DAYS = int(os.getenv('PULSE_WINDOW_FUTURE_DAYS', '30'))

# --------------------------------------------------------------------------
# Logging
# --------------------------------------------------------------------------
LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} {levelname} {name}: {message}',
            'style': '{',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'verbose',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': os.getenv('DJANGO_LOG_LEVEL', 'INFO'),
    },
    'loggers': {
        'tasks.pulse_engine': {
            'handlers': ['console'],
            'level': os.getenv('PULSE_LOG_LEVEL', 'INFO'),
            'propagate': False,
        },
    },
}
