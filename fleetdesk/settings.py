from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

SECRET_KEY = os.environ.get('DJANGO_SECRET_KEY', 'django-insecure-fleetdesk-key')
DEBUG = os.environ.get('DJANGO_DEBUG', 'true').lower() in ('1', 'true', 'yes')
ALLOWED_HOSTS = os.environ.get('ALLOWED_HOSTS', '*').split(',')

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'tripreports',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'fleetdesk.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.debug',
                'django.template.context_processors.request',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'fleetdesk.wsgi.application'

# Reports keep no tables of their own; the database only backs sessions.
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

SESSION_ENGINE = 'django.contrib.sessions.backends.signed_cookies'
MESSAGE_STORAGE = 'django.contrib.messages.storage.cookie.CookieStorage'

LANGUAGE_CODE = 'th'
TIME_ZONE = 'Asia/Bangkok'
USE_I18N = True
USE_TZ = True

STATIC_URL = '/static/'

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

# Fleet back-office API (system of record for trips, vehicles, drivers)
FLEET_API_BASE_URL = os.environ.get('FLEET_API_BASE_URL', 'http://localhost:3000')
FLEET_API_TOKEN = os.environ.get('FLEET_API_TOKEN', '')
FLEET_API_TIMEOUT = float(os.environ.get('FLEET_API_TIMEOUT', '10'))
FLEET_API_PAGE_SIZE = int(os.environ.get('FLEET_API_PAGE_SIZE', '100'))
FLEET_API_MAX_WORKERS = int(os.environ.get('FLEET_API_MAX_WORKERS', '4'))

# Fallbacks used when the system settings endpoint has no usable value
DEFAULT_DISTANCE_RATE = float(os.environ.get('DEFAULT_DISTANCE_RATE', '1.2'))
DEFAULT_FREE_DISTANCE_THRESHOLD = float(os.environ.get('DEFAULT_FREE_DISTANCE_THRESHOLD', '0'))

UNSPECIFIED_DRIVER_LABEL = os.environ.get('UNSPECIFIED_DRIVER_LABEL', 'ไม่ระบุ')

# TTF with Thai glyphs; the built-in Helvetica is used when unset
REPORT_FONT_FILE = os.environ.get('REPORT_FONT_FILE', '')

REPORTS_LOG_LEVEL = os.environ.get('REPORTS_LOG_LEVEL', 'WARNING').upper()

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'loggers': {
        'tripreports': {
            'handlers': ['console'],
            'level': REPORTS_LOG_LEVEL,
        },
    },
}
