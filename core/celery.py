"""
Celery application for the fest backend.

Redis is used as broker and result backend, on separate database indices from
the Channels layer:
- DB 0: Django Channels
- DB 1: Celery broker
- DB 2: Celery results

Run workers and the beat scheduler as separate processes:
    celery -A core worker -l info
    celery -A core beat -l info --scheduler django_celery_beat.schedulers:DatabaseScheduler
"""

import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'core.settings')

app = Celery('core')

# namespace='CELERY' means every celery setting carries a CELERY_ prefix
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()
