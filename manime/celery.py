"""
Celery application.
Production reads the broker from CELERY_* settings; dev and tests run eagerly.
"""

import os
from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "manime.settings")

app = Celery("manime")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
