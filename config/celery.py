"""
StockLedger — Celery Application

Workers and beat are started with ``celery -A config worker`` /
``celery -A config beat``. Task modules are discovered per app.

@file config/celery.py
"""

import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.development')

app = Celery('stockledger')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
