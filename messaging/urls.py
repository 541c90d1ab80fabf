# messaging/urls.py

from django.urls import path
from . import views

urlpatterns = [
    path('conversations/', views.conversations, name='conversations'),
    path('conversations/<int:conversation_id>/', views.conversation_detail, name='conversation-detail'),
    path('conversations/<int:conversation_id>/messages/', views.conversation_messages, name='conversation-messages'),
    path('conversations/<int:conversation_id>/read/', views.mark_conversation_read, name='conversation-read'),
    path('conversations/<int:conversation_id>/archive/', views.archive_conversation, name='conversation-archive'),
    path('conversations/<int:conversation_id>/unarchive/', views.unarchive_conversation, name='conversation-unarchive'),
    path('unread-count/', views.unread_count, name='unread-count'),
    path('<int:message_id>/', views.message_detail, name='message-detail'),
]
