"""
URL configuration for Baytup.

The `urlpatterns` list routes URLs to views.
"""

from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import HttpResponse
from django.urls import include, path


def home(request):
    return HttpResponse("Welcome to Baytup!")


urlpatterns = [
    path('', home, name='home'),

    # Admin Interface
    path('admin/', admin.site.urls),

    # Accounts (register, login, profile, verify email)
    path('api/auth/', include('accounts.urls')),

    # Feature flags & system settings
    path('api/settings/', include('platform_settings.urls')),

    # Static Algerian city lookup
    path('api/cities/', include('cities.urls')),

    path('api/listings/', include('listings.urls')),
    path('api/bookings/', include('bookings.urls')),
    path('api/reviews/', include('reviews.urls')),
    path('api/messages/', include('messaging.urls')),
    path('api/tickets/', include('support.urls')),
]

# Serve static and media files during development ONLY
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
