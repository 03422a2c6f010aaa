"""
Celery configuration for the Event POS service.
"""
import os

from celery import Celery
from celery.schedules import crontab

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('event_pos')

# All celery-related settings use the CELERY_ prefix in Django settings.
app.config_from_object('django.conf:settings', namespace='CELERY')

app.autodiscover_tasks()

app.conf.beat_schedule = {
    'daily-sales-report': {
        'task': 'orders.tasks.generate_daily_sales_report',
        'schedule': crontab(hour=0, minute=15),
    },
}
