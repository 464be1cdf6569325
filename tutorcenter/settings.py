# tutorcenter/settings.py

"""
Django settings for the tutorcenter project.

Apps live in the ``apps/`` directory and are imported by their bare
name (``academics``, ``core`` ...), so that directory is put on
``sys.path`` here.
"""

import os
import sys
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent
APPS_DIR = BASE_DIR / 'apps'

if str(APPS_DIR) not in sys.path:
    sys.path.insert(0, str(APPS_DIR))


def _env_bool(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


SECRET_KEY = os.environ.get('TUTORCENTER_SECRET_KEY', 'django-insecure-tutorcenter-dev-key')

DEBUG = _env_bool('TUTORCENTER_DEBUG', True)

ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get('TUTORCENTER_ALLOWED_HOSTS', 'localhost,127.0.0.1,testserver').split(',')
    if host.strip()
]


# =============================================================================
# APPLICATIONS
# =============================================================================

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',

    'django_countries',

    'utils.apps.UtilsConfig',
    'core.apps.CoreConfig',
    'hr.apps.HrConfig',
    'students.apps.StudentsConfig',
    'academics.apps.AcademicsConfig',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'utils.middleware.AuditContextMiddleware',
]

ROOT_URLCONF = 'tutorcenter.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]


# =============================================================================
# DATABASE
# =============================================================================

DATABASES = {
    'default': {
        'ENGINE': os.environ.get('TUTORCENTER_DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.environ.get('TUTORCENTER_DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.environ.get('TUTORCENTER_DB_USER', ''),
        'PASSWORD': os.environ.get('TUTORCENTER_DB_PASSWORD', ''),
        'HOST': os.environ.get('TUTORCENTER_DB_HOST', ''),
        'PORT': os.environ.get('TUTORCENTER_DB_PORT', ''),
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'


# =============================================================================
# INTERNATIONALIZATION
# =============================================================================

LANGUAGE_CODE = 'en-us'
TIME_ZONE = os.environ.get('TUTORCENTER_TIME_ZONE', 'Asia/Bangkok')
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'


# =============================================================================
# SCHEDULING DEFAULTS
# =============================================================================
# Seed values for core.SchedulingConfiguration when the singleton is first created.

TUTORCENTER_SCHEDULING = {
    'operational_timezone': TIME_ZONE,
    'holiday_lookup_months': 6,
    'scheduling_horizon_days': 730,
    'makeup_allow_holidays': False,
    'makeup_limit_per_class': 0,
    'auto_reschedule_on_holiday_change': True,
    'reference_cache_ttl_seconds': 300,
}


# =============================================================================
# LOGGING
# =============================================================================

LOG_LEVEL = os.environ.get('TUTORCENTER_LOG_LEVEL', 'INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'verbose': {
            'format': '{asctime} [{levelname}] {name}: {message}',
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
        'level': 'WARNING',
    },
    'loggers': {
        'academics': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'core': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'hr': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'students': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'utils': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
        'tutorcenter': {'handlers': ['console'], 'level': LOG_LEVEL, 'propagate': False},
    },
}
