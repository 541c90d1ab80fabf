# accounts/urls.py
from django.urls import path

from . import views

urlpatterns = [
    path('register/', views.register, name='api_register'),
    path('login/', views.login, name='api_login'),
    path('logout/', views.logout, name='api_logout'),
    path('profile/', views.profile, name='api_profile'),
    path('verify-email/<str:token>/', views.verify_email, name='verify-email'),
    path('resend-verification/', views.resend_verification, name='resend-verification'),
    path('become-host/', views.become_host, name='become-host'),
    path('change-password/', views.change_password, name='change-password'),
    path('forgot-password/', views.forgot_password, name='forgot-password'),
    path('reset-password/<str:token>/', views.reset_password, name='reset-password'),
]
