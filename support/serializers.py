# support/serializers.py

from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import Ticket, TicketMessage


class TicketMessageSerializer(serializers.ModelSerializer):
    sender = PublicUserSerializer(read_only=True)

    class Meta:
        model = TicketMessage
        fields = ['id', 'sender', 'sender_type', 'content', 'is_internal', 'created_at']


class TicketSerializer(serializers.ModelSerializer):
    user = PublicUserSerializer(read_only=True)
    assigned_to = PublicUserSerializer(read_only=True)

    class Meta:
        model = Ticket
        fields = '__all__'
        read_only_fields = [
            'ticket_number', 'status', 'assigned_to', 'resolution_time', 'satisfaction_rating',
            'satisfaction_feedback', 'rated_at', 'resolved_at', 'closed_at', 'last_activity_at',
        ]


class TicketCreateSerializer(serializers.ModelSerializer):
    class Meta:
        model = Ticket
        fields = ['subject', 'description', 'category', 'priority', 'related_booking', 'related_listing']


class TicketUpdateSerializer(serializers.ModelSerializer):
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)

    class Meta:
        model = Ticket
        fields = ['status', 'priority', 'category', 'tags']


class TicketMessageCreateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=5000)
    is_internal = serializers.BooleanField(default=False)


class TicketRatingSerializer(serializers.Serializer):
    rating = serializers.IntegerField(min_value=1, max_value=5)
    feedback = serializers.CharField(max_length=1000, required=False, allow_blank=True)
