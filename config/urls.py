"""URL configuration for the Tourdesk booking service.

The `urlpatterns` list routes URLs to views. It includes the Django admin
and the application-level routes of each domain app.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/v1/timeslots/', include('apps.timeslots.urls')),
    path('api/v1/bookings/', include('apps.bookings.urls')),
    path('api/v1/cart/', include('apps.carts.urls')),
    path('api/v1/payments/', include('apps.payments.urls')),
]
