"""Celery application for background work.

Runs the thumbnail pipeline and the periodic retention sweep.
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'server.settings')

app = Celery('server')

# Load configuration from Django settings with 'CELERY_' prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks.py modules in installed apps
app.autodiscover_tasks()
