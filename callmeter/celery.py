import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "callmeter.settings.dev")

app = Celery("callmeter")
# Toutes les clés CELERY_* de settings.py
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
