"""Top-level package for Django configuration.

Holds the environment-specific settings modules, the Celery application
and the WSGI/ASGI entry points of the Tourdesk booking service.
"""

# Import the Celery application as soon as Django starts. Without this
# the shared task registry will not be populated.
from .celery import app as celery_app  # noqa: F401
