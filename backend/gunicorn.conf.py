import os

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings")
import django  # noqa: E402

django.setup()

from django.conf import settings  # noqa: E402

bind = os.environ.get("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.environ.get("GUNICORN_WORKERS", "3"))
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "30"))

# Access and error logs go through settings.LOGGING so they carry request_id
accesslog = errorlog = "-"
loglevel = settings.LOG_LEVEL.lower()
capture_output = True
logconfig_dict = settings.LOGGING
