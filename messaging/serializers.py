# messaging/serializers.py

from django.utils.translation import gettext as _
from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import MESSAGE_TYPE_CHOICES, Conversation, Message


class MessageSerializer(serializers.ModelSerializer):
    sender = PublicUserSerializer(read_only=True)

    class Meta:
        model = Message
        fields = ['id', 'conversation', 'sender', 'content', 'type', 'is_edited', 'edited_at', 'created_at']


class ConversationSerializer(serializers.ModelSerializer):
    participants = PublicUserSerializer(many=True, read_only=True)
    listing_title = serializers.CharField(source='listing.title', read_only=True, default=None)
    unread_count = serializers.SerializerMethodField()
    other_user = serializers.SerializerMethodField()

    class Meta:
        model = Conversation
        fields = [
            'id', 'participants', 'other_user', 'listing', 'listing_title', 'booking', 'type', 'subject',
            'last_message_content', 'last_message_at', 'status', 'message_count', 'unread_count',
            'created_at', 'updated_at',
        ]

    def _viewer(self):
        request = self.context.get('request')
        return request.user if request else None

    def get_unread_count(self, obj):
        viewer = self._viewer()
        return obj.unread_count_for(viewer) if viewer else 0

    def get_other_user(self, obj):
        viewer = self._viewer()
        other = obj.other_participant(viewer) if viewer else None
        return PublicUserSerializer(other).data if other else None


class StartConversationSerializer(serializers.Serializer):
    recipient_id = serializers.IntegerField(required=False)
    listing_id = serializers.IntegerField(required=False)
    booking_id = serializers.IntegerField(required=False)
    subject = serializers.CharField(max_length=200, required=False, allow_blank=True)
    type = serializers.ChoiceField(choices=['inquiry', 'booking', 'support', 'general'], required=False)
    message = serializers.CharField(max_length=2000, required=False, allow_blank=True)

    def validate(self, attrs):
        if not any(attrs.get(key) for key in ('recipient_id', 'listing_id', 'booking_id')):
            raise serializers.ValidationError(_("Provide recipient_id, listing_id or booking_id"))
        return attrs


class SendMessageSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)
    type = serializers.ChoiceField(choices=[c[0] for c in MESSAGE_TYPE_CHOICES], default='text')


class MessageUpdateSerializer(serializers.Serializer):
    content = serializers.CharField(max_length=2000)
