# bookings/models.py

from datetime import timedelta

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.translation import gettext as _

from listings.models import CURRENCY_CHOICES, Listing

STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('confirmed', 'Confirmed'),
    ('paid', 'Paid'),
    ('active', 'Active'),
    ('completed', 'Completed'),
    ('cancelled_by_guest', 'Cancelled by guest'),
    ('cancelled_by_host', 'Cancelled by host'),
    ('cancelled_by_admin', 'Cancelled by admin'),
    ('expired', 'Expired'),
    ('disputed', 'Disputed'),
]

PAYMENT_METHOD_CHOICES = [
    ('card', 'Card'),
    ('cash', 'Cash'),
    ('bank_transfer', 'Bank Transfer'),
]

PAYMENT_STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('paid', 'Paid'),
    ('failed', 'Failed'),
    ('refunded', 'Refunded'),
    ('partially_refunded', 'Partially Refunded'),
]

CANCELLED_BY_CHOICES = [
    ('guest', 'Guest'),
    ('host', 'Host'),
    ('admin', 'Admin'),
]

# A booking in one of these statuses holds its dates
BLOCKING_STATUSES = ('confirmed', 'paid', 'active')
CANCELLABLE_STATUSES = ('pending', 'confirmed', 'paid', 'active')


class BookingError(Exception):
    """A booking rule was violated. The message is safe to show to the user."""


class BookingQuerySet(models.QuerySet):
    def overlapping(self, start, end):
        """Bookings whose [start_date, end_date) range intersects [start, end)."""
        return self.filter(start_date__lt=end, end_date__gt=start)

    def blocking(self):
        return self.filter(status__in=BLOCKING_STATUSES)


class Booking(models.Model):
    listing = models.ForeignKey(Listing, on_delete=models.PROTECT, related_name='bookings')
    guest = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='bookings')
    host = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='host_bookings')

    start_date = models.DateField()
    end_date = models.DateField()
    check_in_time = models.CharField(max_length=5, default='15:00')
    check_out_time = models.CharField(max_length=5, default='11:00')

    adults = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    children = models.PositiveIntegerField(default=0)
    infants = models.PositiveIntegerField(default=0)

    # Pricing snapshot taken at booking time
    base_price = models.DecimalField(max_digits=12, decimal_places=2)
    nights = models.PositiveIntegerField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    cleaning_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    service_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    host_commission = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='DZD')
    security_deposit = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # Payment
    payment_method = models.CharField(max_length=20, choices=PAYMENT_METHOD_CHOICES, blank=True)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default='pending')
    paid_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    paid_at = models.DateTimeField(null=True, blank=True)
    refund_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    refunded_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='pending')
    special_requests = models.TextField(max_length=500, blank=True)
    host_message = models.TextField(max_length=500, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    # Cancellation
    cancelled_by = models.CharField(max_length=10, choices=CANCELLED_BY_CHOICES, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.TextField(max_length=500, blank=True)
    cancellation_details = models.JSONField(default=dict, blank=True)

    # Completion confirmations
    host_confirmed_completion = models.BooleanField(default=False)
    guest_confirmed_completion = models.BooleanField(default=False)
    completed_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['listing', 'start_date', 'end_date']),
            models.Index(fields=['status']),
        ]

    def __str__(self):
        return f"Booking {self.id} - {self.listing_id} - {self.guest.email} [{self.status}]"

    @property
    def total_guests(self):
        return self.adults + self.children

    @property
    def host_payout(self):
        return self.subtotal + self.cleaning_fee - self.host_commission

    @property
    def is_cancelled(self):
        return self.status.startswith('cancelled_by_')

    def response_deadline(self):
        return self.created_at + timedelta(hours=settings.HOST_RESPONSE_DEADLINE_HOURS)

    def is_participant(self, user):
        return user.id in (self.guest_id, self.host_id) or user.is_platform_admin

    def role_of(self, user):
        """'guest', 'host' or 'admin' for the acting user."""
        if user.id == self.guest_id:
            return 'guest'
        if user.id == self.host_id:
            return 'host'
        if user.is_platform_admin:
            return 'admin'
        return None

    def record_payment(self, method):
        if self.status != 'confirmed':
            raise BookingError(_("Only confirmed bookings can be paid"))
        self.payment_method = method
        self.payment_status = 'paid'
        self.paid_amount = self.total_amount
        self.paid_at = timezone.now()
        self.status = 'paid'
        self.save()

    def confirm_completion(self, role):
        """Record the host's or guest's confirmation. Returns True once both have confirmed."""
        if self.status not in ('paid', 'active', 'completed'):
            raise BookingError(_("This booking cannot be completed"))
        if timezone.localdate() < self.end_date:
            raise BookingError(_("The stay has not ended yet"))

        if role == 'host':
            self.host_confirmed_completion = True
        elif role == 'guest':
            self.guest_confirmed_completion = True

        newly_completed = (
            self.status != 'completed'
            and self.host_confirmed_completion
            and self.guest_confirmed_completion
        )
        if newly_completed:
            self.status = 'completed'
            self.completed_at = timezone.now()
        self.save()
        if newly_completed:
            Listing.all_objects.filter(pk=self.listing_id).update(bookings_count=models.F('bookings_count') + 1)
        return newly_completed
