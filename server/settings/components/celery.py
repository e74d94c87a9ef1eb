"""Celery settings (read by ``server.celery`` with the CELERY_ namespace)."""

from server.settings.components import config
from server.settings.components.sharing import SHARING_SWEEP_INTERVAL_SECONDS

CELERY_BROKER_URL = config(
    'CELERY_BROKER_URL',
    default='redis://localhost:6379/0',
)
CELERY_TASK_IGNORE_RESULT = True
CELERY_TASK_ACKS_LATE = True
CELERY_TIMEZONE = 'UTC'

CELERY_BEAT_SCHEDULE = {
    'sweep-expired-files': {
        'task': 'files.sweep_expired_files',
        'schedule': float(SHARING_SWEEP_INTERVAL_SECONDS),
    },
}
