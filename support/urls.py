# support/urls.py

from django.urls import path
from . import views

urlpatterns = [
    path('', views.tickets, name='tickets'),
    path('stats/', views.ticket_stats, name='ticket-stats'),
    path('<int:ticket_id>/', views.ticket_detail, name='ticket-detail'),
    path('<int:ticket_id>/messages/', views.ticket_messages, name='ticket-messages'),
    path('<int:ticket_id>/assign/', views.assign_ticket, name='ticket-assign'),
    path('<int:ticket_id>/rate/', views.rate_ticket, name='ticket-rate'),
]
