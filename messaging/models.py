# messaging/models.py

from django.conf import settings
from django.db import models
from django.utils import timezone

from bookings.models import Booking
from listings.models import Listing

CONVERSATION_TYPE_CHOICES = [
    ('inquiry', 'Inquiry'),
    ('booking', 'Booking'),
    ('support', 'Support'),
    ('general', 'General'),
]

CONVERSATION_STATUS_CHOICES = [
    ('active', 'Active'),
    ('archived', 'Archived'),
    ('blocked', 'Blocked'),
]

MESSAGE_TYPE_CHOICES = [
    ('text', 'Text'),
    ('image', 'Image'),
    ('file', 'File'),
    ('system', 'System'),
    ('booking_request', 'Booking Request'),
    ('booking_confirmation', 'Booking Confirmation'),
]


class Conversation(models.Model):
    participants = models.ManyToManyField(
        settings.AUTH_USER_MODEL, through='ConversationParticipant', related_name='conversations',
    )
    listing = models.ForeignKey(Listing, on_delete=models.SET_NULL, null=True, blank=True, related_name='conversations')
    booking = models.ForeignKey(Booking, on_delete=models.SET_NULL, null=True, blank=True, related_name='conversations')
    type = models.CharField(max_length=20, choices=CONVERSATION_TYPE_CHOICES, default='general')
    subject = models.CharField(max_length=200, blank=True)

    # Snapshot of the latest message for conversation lists
    last_message_content = models.TextField(max_length=2000, blank=True)
    last_message_sender = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='+',
    )
    last_message_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=CONVERSATION_STATUS_CHOICES, default='active')
    message_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-last_message_at', '-updated_at']

    def __str__(self):
        return f"Conversation {self.id} ({self.type}) [{self.status}]"

    def has_participant(self, user):
        return self.memberships.filter(user=user).exists()

    def other_participant(self, user):
        membership = self.memberships.exclude(user=user).select_related('user').first()
        return membership.user if membership else None

    def unread_count_for(self, user):
        membership = self.memberships.filter(user=user).first()
        if membership is None:
            return 0
        unread = self.messages.exclude(sender=user)
        if membership.last_read_at:
            unread = unread.filter(created_at__gt=membership.last_read_at)
        return unread.count()

    def mark_read(self, user):
        now = timezone.now()
        self.memberships.filter(user=user).update(last_read_at=now)
        for message in self.messages.exclude(sender=user).exclude(read_by=user):
            message.read_by.add(user)


class ConversationParticipant(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='memberships')
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='conversation_memberships')
    joined_at = models.DateTimeField(auto_now_add=True)
    last_read_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ('conversation', 'user')

    def __str__(self):
        return f"{self.user.email} in conversation {self.conversation_id}"


class Message(models.Model):
    conversation = models.ForeignKey(Conversation, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='messages_sent')
    content = models.TextField(max_length=2000)
    type = models.CharField(max_length=30, choices=MESSAGE_TYPE_CHOICES, default='text')
    read_by = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='messages_read')
    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"Message {self.id} from {self.sender.email}"
