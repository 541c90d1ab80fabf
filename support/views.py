# support/views.py

import logging

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Avg, Count, Q
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from accounts.permissions import IsPlatformAdmin

from .models import CATEGORY_CHOICES, PRIORITY_CHOICES, STATUS_CHOICES, Ticket
from .serializers import (
    TicketCreateSerializer,
    TicketMessageCreateSerializer,
    TicketMessageSerializer,
    TicketRatingSerializer,
    TicketSerializer,
    TicketUpdateSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


def _ticket_payload(ticket, user):
    messages = ticket.messages.select_related('sender')
    if not user.is_platform_admin:
        messages = messages.filter(is_internal=False)
    data = TicketSerializer(ticket).data
    data['messages'] = TicketMessageSerializer(messages, many=True).data
    return data


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def tickets(request):
    """
    API Endpoint: /api/tickets/
    POST opens a ticket with its description as the first message.
    GET lists the user's own tickets, or every ticket for admins.
    """
    if request.method == 'POST':
        serializer = TicketCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        with transaction.atomic():
            ticket = serializer.save(user=request.user)
            ticket.add_message(request.user, ticket.description, sender_type='user')

        logger.info(f"🎫 Ticket {ticket.ticket_number} opened by {request.user.email}")
        return Response(_ticket_payload(ticket, request.user), status=status.HTTP_201_CREATED)

    queryset = Ticket.objects.select_related('user', 'assigned_to')
    if not request.user.is_platform_admin:
        queryset = queryset.filter(user=request.user)

    params = request.query_params
    for field in ('status', 'priority', 'category'):
        if params.get(field):
            queryset = queryset.filter(**{field: params[field]})
    if params.get('assigned_to'):
        if params['assigned_to'] == 'unassigned':
            queryset = queryset.filter(assigned_to__isnull=True)
        elif params['assigned_to'].isdigit():
            queryset = queryset.filter(assigned_to_id=int(params['assigned_to']))
        else:
            return Response({
                "error": _("assigned_to must be a user id or 'unassigned'")
            }, status=status.HTTP_400_BAD_REQUEST)
    search = params.get('search')
    if search:
        queryset = queryset.filter(
            Q(subject__icontains=search) | Q(ticket_number__icontains=search) | Q(description__icontains=search)
        )

    paginator = PageNumberPagination()
    page = paginator.paginate_queryset(queryset.order_by('-last_activity_at'), request)
    return paginator.get_paginated_response(TicketSerializer(page, many=True).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def ticket_detail(request, ticket_id):
    ticket = get_object_or_404(Ticket, id=ticket_id)
    is_admin = request.user.is_platform_admin

    if request.method == 'GET':
        if ticket.user_id != request.user.id and not is_admin:
            return Response({"error": _("Not authorized to view this ticket")}, status=status.HTTP_403_FORBIDDEN)
        return Response(_ticket_payload(ticket, request.user))

    if not is_admin:
        return Response({"error": _("Admin access required.")}, status=status.HTTP_403_FORBIDDEN)

    if request.method == 'DELETE':
        number = ticket.ticket_number
        ticket.delete()
        logger.info(f"🗑️ Ticket {number} deleted by {request.user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    serializer = TicketUpdateSerializer(ticket, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    new_status = serializer.validated_data.pop('status', None)
    for field, value in serializer.validated_data.items():
        setattr(ticket, field, value)
    if new_status:
        ticket.set_status(new_status)
    else:
        ticket.last_activity_at = timezone.now()
    ticket.save()

    if new_status in ('resolved', 'closed'):
        logger.info(f"✅ Ticket {ticket.ticket_number} {new_status} by {request.user.email}")
    return Response(_ticket_payload(ticket, request.user))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def ticket_messages(request, ticket_id):
    """
    Reply on a ticket.
    A reply from the owner reopens a resolved ticket; an agent reply on an
    open ticket moves it to pending. Closed tickets take no replies.
    """
    ticket = get_object_or_404(Ticket, id=ticket_id)
    is_owner = ticket.user_id == request.user.id
    is_agent = request.user.is_platform_admin

    if not is_owner and not is_agent:
        return Response({"error": _("Not authorized to add messages to this ticket")},
                        status=status.HTTP_403_FORBIDDEN)
    if ticket.status == 'closed':
        return Response({"error": _("This ticket is closed")}, status=status.HTTP_400_BAD_REQUEST)

    serializer = TicketMessageCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    is_internal = is_agent and serializer.validated_data['is_internal']
    if not is_internal:
        if is_agent and ticket.status == 'open':
            ticket.status = 'pending'
        elif is_owner and not is_agent and ticket.status == 'resolved':
            ticket.status = 'open'

    message = ticket.add_message(
        request.user,
        serializer.validated_data['content'],
        sender_type='agent' if is_agent else 'user',
        is_internal=is_internal,
    )
    return Response({
        "message": TicketMessageSerializer(message).data,
        "ticket": _ticket_payload(ticket, request.user),
    })


@api_view(['PATCH'])
@permission_classes([IsPlatformAdmin])
def assign_ticket(request, ticket_id):
    """Body: {"agent_id": <admin user id> | null}"""
    ticket = get_object_or_404(Ticket, id=ticket_id)
    agent_id = request.data.get('agent_id')

    if agent_id:
        agent = User.objects.filter(id=agent_id, role='admin').first()
        if agent is None:
            return Response({"error": _("Invalid agent ID")}, status=status.HTTP_400_BAD_REQUEST)
        ticket.assigned_to = agent
    else:
        ticket.assigned_to = None

    ticket.last_activity_at = timezone.now()
    ticket.save(update_fields=['assigned_to', 'last_activity_at', 'updated_at'])
    return Response(_ticket_payload(ticket, request.user))


@api_view(['PATCH'])
@permission_classes([IsAuthenticated])
def rate_ticket(request, ticket_id):
    ticket = get_object_or_404(Ticket, id=ticket_id)
    if ticket.user_id != request.user.id:
        return Response({"error": _("Only the ticket owner can rate it")}, status=status.HTTP_403_FORBIDDEN)
    if ticket.status not in ('resolved', 'closed'):
        return Response({"error": _("Can only rate resolved or closed tickets")}, status=status.HTTP_400_BAD_REQUEST)

    serializer = TicketRatingSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    ticket.satisfaction_rating = serializer.validated_data['rating']
    ticket.satisfaction_feedback = serializer.validated_data.get('feedback', '')
    ticket.rated_at = timezone.now()
    ticket.save(update_fields=['satisfaction_rating', 'satisfaction_feedback', 'rated_at', 'updated_at'])
    return Response(TicketSerializer(ticket).data)


@api_view(['GET'])
@permission_classes([IsPlatformAdmin])
def ticket_stats(request):
    totals = Ticket.objects.aggregate(
        total=Count('id'),
        average_resolution_minutes=Avg('resolution_time'),
        average_satisfaction=Avg('satisfaction_rating'),
    )
    by_status = dict(Ticket.objects.order_by().values_list('status').annotate(count=Count('id')))
    by_priority = dict(Ticket.objects.order_by().values_list('priority').annotate(count=Count('id')))
    by_category = dict(Ticket.objects.order_by().values_list('category').annotate(count=Count('id')))

    return Response({
        "total": totals['total'],
        "by_status": {key: by_status.get(key, 0) for key, _label in STATUS_CHOICES},
        "by_priority": {key: by_priority.get(key, 0) for key, _label in PRIORITY_CHOICES},
        "by_category": {key: by_category.get(key, 0) for key, _label in CATEGORY_CHOICES},
        "average_resolution_minutes": round(totals['average_resolution_minutes'] or 0),
        "average_satisfaction": round(totals['average_satisfaction'] or 0, 1),
    })
