# bookings/urls.py

from django.urls import path
from . import views

urlpatterns = [
    path('', views.bookings, name='bookings'),
    path('quote/', views.booking_quote, name='booking-quote'),
    path('<int:booking_id>/', views.booking_detail, name='booking-detail'),
    path('<int:booking_id>/respond/', views.booking_respond, name='booking-respond'),
    path('<int:booking_id>/pay/', views.booking_pay, name='booking-pay'),
    path('<int:booking_id>/cancel/', views.booking_cancel, name='booking-cancel'),
    path('<int:booking_id>/refund-preview/', views.refund_preview, name='booking-refund-preview'),
    path('<int:booking_id>/confirm-completion/', views.confirm_completion, name='booking-confirm-completion'),
]
