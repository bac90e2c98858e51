"""ASGI config for the Tourdesk booking service.

Stripe webhooks and the public booking API are plain request/response
endpoints, so the ASGI entry point simply wraps the Django application.
"""

import os
from django.core.asgi import get_asgi_application  # type: ignore

# Production servers should set DJANGO_SETTINGS_MODULE explicitly.
os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings.dev')

application = get_asgi_application()
