"""
ASGI config for the shopping assistant project.

The chat endpoint streams server-sent events from an async view, so
ASGI is the preferred way to serve the project.
"""

import os

from django.core.asgi import get_asgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "core.settings.development")

application = get_asgi_application()
