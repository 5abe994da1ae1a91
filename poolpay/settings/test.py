from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

PAY = {
    **PAY,
    'TTL_SECONDS': 300,
    'MAX_ACTIVE_PER_PHONE': 3,
    'MAX_ACTIVE_PER_IP': 20,
    'RETURN_URL': '',
    'ADMIN_TOKEN': '',
    'ALFA_BASE_URL': 'https://alfa.test/payment',
    'ALFA_TOKEN': 'test-token',
    'ALFA_USERNAME': '',
    'ALFA_PASSWORD': '',
    'FASTSALE_ENDPOINT': 'https://club.test/api/fastsale',
    'CLUB_ID': 'club-1',
    'API_KEY': 'api-key',
    'API_USER_TOKEN': '',
    'BASIC_USER': 'user',
    'BASIC_PASS': 'pass',
}

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'root': {'handlers': [], 'level': 'CRITICAL'},
}
