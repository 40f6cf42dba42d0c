import os
from celery import Celery
from celery.schedules import crontab

# Set default Django settings
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('roomlift')

# Load configuration from Django settings
app.config_from_object('django.conf:settings', namespace='CELERY')

# Auto-discover tasks from installed apps
app.autodiscover_tasks()

# Periodic tasks schedule
app.conf.beat_schedule = {
    'fail-stale-jobs': {
        'task': 'roomlift.tasks.cleanup.fail_stale_jobs',
        'schedule': crontab(minute='*/5'),  # Every 5 minutes
    },
}
