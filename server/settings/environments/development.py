"""Settings for local development and the test suite."""

from typing import Final

DEBUG = True

ALLOWED_HOSTS: Final = [
    'localhost',
    '0.0.0.0',  # noqa: S104
    '127.0.0.1',
    '[::1]',
    'testserver',
]

EMAIL_BACKEND = 'django.core.mail.backends.console.EmailBackend'
