# messaging/views.py

import logging

from django.contrib.auth import get_user_model
from django.shortcuts import get_object_or_404
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from bookings.models import Booking
from listings.models import Listing

from .models import Conversation, Message
from .serializers import (
    ConversationSerializer,
    MessageSerializer,
    MessageUpdateSerializer,
    SendMessageSerializer,
    StartConversationSerializer,
)
from .services import MessagingError, delete_message, edit_message, send_message, start_conversation, unread_total

logger = logging.getLogger(__name__)
User = get_user_model()


def _get_conversation(request, conversation_id):
    conversation = get_object_or_404(Conversation, id=conversation_id)
    if not conversation.has_participant(request.user):
        return None
    return conversation


def _not_participant():
    return Response({"error": _("You are not authorized to view this conversation")}, status=status.HTTP_403_FORBIDDEN)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def conversations(request):
    """
    GET  /api/messages/conversations/?status=active|archived|blocked
    POST /api/messages/conversations/  start or reuse a conversation
    """
    if request.method == 'GET':
        queryset = Conversation.objects.filter(memberships__user=request.user).select_related('listing')
        status_filter = request.query_params.get('status', 'active')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        queryset = queryset.order_by('-last_message_at', '-updated_at').distinct()

        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(queryset, request)
        serializer = ConversationSerializer(page, many=True, context={'request': request})
        return paginator.get_paginated_response(serializer.data)

    serializer = StartConversationSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    listing = booking = recipient = None
    if data.get('booking_id'):
        booking = get_object_or_404(Booking, id=data['booking_id'])
        if not booking.is_participant(request.user):
            return Response({"error": _("You are not part of this booking")}, status=status.HTTP_403_FORBIDDEN)
        listing = booking.listing
        recipient = booking.host if request.user.id == booking.guest_id else booking.guest
    if data.get('listing_id') and listing is None:
        listing = get_object_or_404(Listing, id=data['listing_id'])
        recipient = listing.host
    if data.get('recipient_id'):
        recipient = get_object_or_404(User, id=data['recipient_id'])

    try:
        conversation, created = start_conversation(
            request.user, recipient,
            listing=listing,
            booking=booking,
            subject=data.get('subject', ''),
            conversation_type=data.get('type'),
        )
        if data.get('message'):
            send_message(conversation, request.user, data['message'])
    except MessagingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(
        ConversationSerializer(conversation, context={'request': request}).data,
        status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
    )


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated])
def conversation_detail(request, conversation_id):
    """
    GET    → messages, oldest first. Opening the conversation marks everything read.
    DELETE → remove the conversation and its messages for both participants
    """
    conversation = _get_conversation(request, conversation_id)
    if conversation is None:
        return _not_participant()

    if request.method == 'DELETE':
        conversation.delete()
        logger.info(f"Conversation {conversation_id} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    messages = conversation.messages.select_related('sender')
    data = {
        "conversation": ConversationSerializer(conversation, context={'request': request}).data,
        "messages": MessageSerializer(messages, many=True).data,
    }
    conversation.mark_read(request.user)
    data["conversation"]["unread_count"] = 0
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def conversation_messages(request, conversation_id):
    conversation = _get_conversation(request, conversation_id)
    if conversation is None:
        return _not_participant()

    serializer = SendMessageSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        message = send_message(
            conversation, request.user,
            serializer.validated_data['content'],
            serializer.validated_data['type'],
        )
    except MessagingError as e:
        logger.warning(f"Message refused in conversation {conversation.id}: {e}")
        return Response({"error": str(e)}, status=status.HTTP_403_FORBIDDEN)

    return Response(MessageSerializer(message).data, status=status.HTTP_201_CREATED)


def _set_status(request, conversation_id, new_status, message):
    conversation = _get_conversation(request, conversation_id)
    if conversation is None:
        return _not_participant()
    if conversation.status == 'blocked':
        return Response({"error": _("This conversation is blocked")}, status=status.HTTP_400_BAD_REQUEST)
    conversation.status = new_status
    conversation.save(update_fields=['status', 'updated_at'])
    return Response({"message": message, "status": conversation.status})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def archive_conversation(request, conversation_id):
    return _set_status(request, conversation_id, 'archived', _("Conversation archived successfully"))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def unarchive_conversation(request, conversation_id):
    return _set_status(request, conversation_id, 'active', _("Conversation unarchived successfully"))


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def unread_count(request):
    return Response({"unread_count": unread_total(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_conversation_read(request, conversation_id):
    conversation = _get_conversation(request, conversation_id)
    if conversation is None:
        return _not_participant()
    conversation.mark_read(request.user)
    return Response({"message": _("Conversation marked as read"), "unread_count": 0})


@api_view(['PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def message_detail(request, message_id):
    """
    PATCH  {"content"} → edit one of your messages (within 15 minutes of sending)
    DELETE             → delete one of your messages
    """
    message = get_object_or_404(Message.objects.select_related('conversation', 'sender'), id=message_id)
    if message.sender_id != request.user.id:
        if request.method == 'DELETE':
            error = _("You can only delete your own messages")
        else:
            error = _("You can only edit your own messages")
        return Response({"error": error}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        delete_message(message)
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = MessageUpdateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        edit_message(message, serializer.validated_data['content'])
    except MessagingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(MessageSerializer(message).data)
