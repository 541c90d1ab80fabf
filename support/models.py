# support/models.py

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import IntegrityError, models, transaction
from django.utils import timezone

from bookings.models import Booking
from listings.models import Listing

CATEGORY_CHOICES = [
    ('account', 'Account'),
    ('booking', 'Booking'),
    ('payment', 'Payment'),
    ('listing', 'Listing'),
    ('technical', 'Technical'),
    ('dispute', 'Dispute'),
    ('verification', 'Verification'),
    ('other', 'Other'),
]

STATUS_CHOICES = [
    ('open', 'Open'),
    ('pending', 'Pending'),
    ('resolved', 'Resolved'),
    ('closed', 'Closed'),
]

PRIORITY_CHOICES = [
    ('low', 'Low'),
    ('normal', 'Normal'),
    ('high', 'High'),
    ('urgent', 'Urgent'),
]

SENDER_TYPE_CHOICES = [
    ('user', 'User'),
    ('agent', 'Agent'),
    ('system', 'System'),
]

TICKET_NUMBER_ATTEMPTS = 5


def next_ticket_number(today=None):
    """TKT-YYYYMM-NNNNN, the sequence restarting every month."""
    today = today or timezone.localdate()
    prefix = f"TKT-{today:%Y%m}-"
    last = (
        Ticket.objects.filter(ticket_number__startswith=prefix)
        .order_by('-ticket_number')
        .values_list('ticket_number', flat=True)
        .first()
    )
    sequence = int(last.rsplit('-', 1)[1]) + 1 if last else 1
    return f"{prefix}{sequence:05d}"


class Ticket(models.Model):
    ticket_number = models.CharField(max_length=20, unique=True, editable=False)
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='tickets')
    subject = models.CharField(max_length=200)
    description = models.TextField(max_length=5000)
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='other')
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='open')
    priority = models.CharField(max_length=10, choices=PRIORITY_CHOICES, default='normal')
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True, related_name='assigned_tickets',
    )
    related_booking = models.ForeignKey(Booking, on_delete=models.SET_NULL, null=True, blank=True, related_name='tickets')
    related_listing = models.ForeignKey(Listing, on_delete=models.SET_NULL, null=True, blank=True, related_name='tickets')
    tags = models.JSONField(default=list, blank=True)

    resolution_time = models.PositiveIntegerField(null=True, blank=True, help_text="Minutes from creation to resolution")
    satisfaction_rating = models.PositiveSmallIntegerField(
        null=True, blank=True, validators=[MinValueValidator(1), MaxValueValidator(5)],
    )
    satisfaction_feedback = models.TextField(max_length=1000, blank=True)
    rated_at = models.DateTimeField(null=True, blank=True)

    resolved_at = models.DateTimeField(null=True, blank=True)
    closed_at = models.DateTimeField(null=True, blank=True)
    last_activity_at = models.DateTimeField(default=timezone.now)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-last_activity_at']

    def __str__(self):
        return f"{self.ticket_number} - {self.subject} [{self.status}]"

    def save(self, *args, **kwargs):
        if self.ticket_number:
            return super().save(*args, **kwargs)

        # Two tickets opened at once can draw the same number; draw again
        for attempt in range(1, TICKET_NUMBER_ATTEMPTS + 1):
            self.ticket_number = next_ticket_number()
            try:
                with transaction.atomic():
                    return super().save(*args, **kwargs)
            except IntegrityError:
                taken = Ticket.objects.filter(ticket_number=self.ticket_number).exists()
                self.ticket_number = ''
                if not taken or attempt == TICKET_NUMBER_ATTEMPTS:
                    raise

    def set_status(self, new_status):
        """Change status, stamping resolution and closing times the first time they happen."""
        now = timezone.now()
        self.status = new_status
        self.last_activity_at = now
        if new_status == 'resolved' and not self.resolved_at:
            self.resolved_at = now
            self.resolution_time = int((now - self.created_at).total_seconds() // 60)
        if new_status == 'closed' and not self.closed_at:
            self.closed_at = now

    def add_message(self, sender, content, sender_type='user', is_internal=False):
        message = TicketMessage.objects.create(
            ticket=self, sender=sender, sender_type=sender_type, content=content, is_internal=is_internal,
        )
        self.last_activity_at = message.created_at
        self.save(update_fields=['last_activity_at', 'status', 'updated_at'])
        return message


class TicketMessage(models.Model):
    ticket = models.ForeignKey(Ticket, on_delete=models.CASCADE, related_name='messages')
    sender = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, related_name='+')
    sender_type = models.CharField(max_length=10, choices=SENDER_TYPE_CHOICES, default='user')
    content = models.TextField(max_length=5000)
    # Agent-only notes, never shown to the ticket owner
    is_internal = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['created_at']

    def __str__(self):
        return f"{self.sender_type} message on {self.ticket.ticket_number}"
