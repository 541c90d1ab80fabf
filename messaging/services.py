# messaging/services.py
import logging
from datetime import timedelta

from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext as _

from .models import Conversation, ConversationParticipant, Message

logger = logging.getLogger(__name__)

MESSAGE_EDIT_WINDOW = timedelta(minutes=15)


class MessagingError(Exception):
    pass


def find_conversation(user, other, listing=None, booking=None):
    queryset = Conversation.objects.filter(memberships__user=user).filter(memberships__user=other)
    if listing is not None:
        queryset = queryset.filter(listing=listing)
    if booking is not None:
        queryset = queryset.filter(booking=booking)
    return queryset.distinct().first()


def start_conversation(user, other, listing=None, booking=None, subject='', conversation_type=None):
    """Return (conversation, created). An existing thread between the two users is reused."""
    if user.id == other.id:
        raise MessagingError(_("You cannot message yourself"))

    conversation = find_conversation(user, other, listing, booking)
    if conversation is not None:
        return conversation, False

    if conversation_type is None:
        conversation_type = 'inquiry' if listing else 'booking' if booking else 'general'

    with transaction.atomic():
        conversation = Conversation.objects.create(
            listing=listing,
            booking=booking,
            subject=subject or '',
            type=conversation_type,
        )
        ConversationParticipant.objects.bulk_create([
            ConversationParticipant(conversation=conversation, user=user),
            ConversationParticipant(conversation=conversation, user=other),
        ])
    logger.info(f"Conversation {conversation.id} started by {user.email} with {other.email}")
    return conversation, True


def send_message(conversation, sender, content, message_type='text'):
    if conversation.status == 'blocked':
        raise MessagingError(_("This conversation is blocked"))

    with transaction.atomic():
        message = Message.objects.create(
            conversation=conversation, sender=sender, content=content, type=message_type,
        )
        message.read_by.add(sender)
        Conversation.objects.filter(pk=conversation.pk).update(
            last_message_content=content,
            last_message_sender=sender,
            last_message_at=message.created_at,
            message_count=F('message_count') + 1,
        )
        ConversationParticipant.objects.filter(conversation=conversation, user=sender).update(
            last_read_at=message.created_at,
        )
    conversation.refresh_from_db()
    return message


def unread_total(user):
    return sum(
        conversation.unread_count_for(user)
        for conversation in Conversation.objects.filter(memberships__user=user).exclude(status='blocked')
    )


def _refresh_snapshot(conversation):
    """Point the conversation's last-message fields at its newest remaining message."""
    latest = conversation.messages.order_by('-created_at', '-id').first()
    conversation.last_message_content = latest.content if latest else ''
    conversation.last_message_sender = latest.sender if latest else None
    conversation.last_message_at = latest.created_at if latest else None
    conversation.message_count = conversation.messages.count()
    conversation.save(update_fields=[
        'last_message_content', 'last_message_sender', 'last_message_at', 'message_count', 'updated_at',
    ])


def edit_message(message, content, now=None):
    """Messages can be edited within MESSAGE_EDIT_WINDOW of sending."""
    now = now or timezone.now()
    if now - message.created_at > MESSAGE_EDIT_WINDOW:
        raise MessagingError(_("Cannot edit messages older than 15 minutes"))

    with transaction.atomic():
        message.content = content
        message.is_edited = True
        message.edited_at = now
        message.save(update_fields=['content', 'is_edited', 'edited_at'])
        _refresh_snapshot(message.conversation)
    return message


def delete_message(message):
    message_id, conversation = message.id, message.conversation
    with transaction.atomic():
        message.delete()
        _refresh_snapshot(conversation)
    logger.info(f"Message {message_id} deleted from conversation {conversation.id}")
