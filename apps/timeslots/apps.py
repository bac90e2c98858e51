from django.apps import AppConfig


class TimeslotsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.timeslots"
    verbose_name = "Time slots"

    def ready(self):
        from . import signals  # noqa: F401
