"""
Settings used by the test suite.

Imports the production settings and switches off everything that needs
HTTPS, SMTP or a persistent media directory.
"""

import tempfile

from .settings import *  # noqa: F401,F403

DEBUG = False
ALLOWED_HOSTS = ['testserver', 'localhost', '127.0.0.1']

SECURE_SSL_REDIRECT = False
SESSION_COOKIE_SECURE = False
CSRF_COOKIE_SECURE = False

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']
EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'
DEFAULT_FROM_EMAIL = 'no-reply@testserver'

MEDIA_ROOT = tempfile.mkdtemp(prefix='bossy-test-media-')
STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

GEMINI_API_KEY = ''
POST_EDIT_WINDOW_MINUTES = 15
POST_RETENTION_DAYS = 30

LOGGING['root']['level'] = 'ERROR'  # noqa: F405
LOGGING['loggers']['campus']['level'] = 'ERROR'  # noqa: F405
