from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    verbose_name = "Bookings"

    def ready(self):
        from shared.application.message_bus import message_bus

        from .domain.events import BookingCancelled, BookingConfirmed, BookingReconstructed
        from . import handlers

        message_bus.register_event_handler(BookingConfirmed, handlers.dispatch_confirmation_email)
        message_bus.register_event_handler(BookingReconstructed, handlers.dispatch_confirmation_email)
        message_bus.register_event_handler(BookingReconstructed, handlers.flag_uncommitted_occupancy)
        message_bus.register_event_handler(BookingCancelled, handlers.log_cancellation)
