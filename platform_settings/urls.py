# platform_settings/urls.py
from django.urls import path

from . import views

urlpatterns = [
    path('feature-flags/', views.public_feature_flags, name='feature-flags'),
    path('system-settings/', views.system_settings, name='system-settings'),
    path('system-settings/features/<str:feature_name>/', views.update_feature, name='update-feature'),
    path('cache-stats/', views.cache_stats, name='feature-cache-stats'),
    path('cache/invalidate/', views.invalidate_cache, name='feature-cache-invalidate'),
]
