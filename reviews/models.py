# reviews/models.py
from datetime import timedelta

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone

from bookings.models import Booking
from listings.models import Listing

TYPE_CHOICES = [
    ('guest_to_host', 'Guest to Host'),
    ('host_to_guest', 'Host to Guest'),
]

STATUS_CHOICES = [
    ('pending', 'Pending'),
    ('published', 'Published'),
    ('hidden', 'Hidden'),
    ('flagged', 'Flagged'),
    ('waiting_pair', 'Waiting for the other review'),
]

BLIND_STATUS_CHOICES = [
    ('waiting', 'Waiting'),
    ('paired', 'Paired'),
    ('auto_published', 'Auto-published'),
]

LANGUAGE_CHOICES = [
    ('en', 'English'),
    ('fr', 'French'),
    ('ar', 'Arabic'),
]

# Optional per-category ratings, in display order
SUB_RATINGS = ['cleanliness', 'communication', 'check_in', 'accuracy', 'location', 'value']

BLIND_REVIEW_WINDOW_DAYS = 14

OPPOSITE_TYPE = {
    'guest_to_host': 'host_to_guest',
    'host_to_guest': 'guest_to_host',
}


def _rating_field(required=False):
    validators = [MinValueValidator(1), MaxValueValidator(5)]
    if required:
        return models.PositiveSmallIntegerField(validators=validators)
    return models.PositiveSmallIntegerField(null=True, blank=True, validators=validators)


class Review(models.Model):
    listing = models.ForeignKey(Listing, on_delete=models.CASCADE, related_name='reviews')
    booking = models.ForeignKey(Booking, on_delete=models.CASCADE, related_name='reviews')
    reviewer = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_written')
    reviewee = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reviews_received')
    type = models.CharField(max_length=20, choices=TYPE_CHOICES)

    overall = _rating_field(required=True)
    cleanliness = _rating_field()
    communication = _rating_field()
    check_in = _rating_field()
    accuracy = _rating_field()
    location = _rating_field()
    value = _rating_field()

    title = models.CharField(max_length=100, blank=True)
    comment = models.TextField(max_length=1000)
    is_edited = models.BooleanField(default=False)
    edited_at = models.DateTimeField(null=True, blank=True)
    response = models.TextField(max_length=500, blank=True)
    responded_at = models.DateTimeField(null=True, blank=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default='waiting_pair')
    paired_review = models.OneToOneField('self', on_delete=models.SET_NULL, null=True, blank=True, related_name='+')
    blind_status = models.CharField(max_length=20, choices=BLIND_STATUS_CHOICES, default='waiting')
    auto_publish_at = models.DateTimeField(null=True, blank=True)
    published_at = models.DateTimeField(null=True, blank=True)

    helpful_count = models.PositiveIntegerField(default=0)
    helpful_users = models.ManyToManyField(settings.AUTH_USER_MODEL, blank=True, related_name='helpful_reviews')
    flag_reason = models.CharField(max_length=255, blank=True)
    language = models.CharField(max_length=2, choices=LANGUAGE_CHOICES, default='en')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-created_at']
        constraints = [
            models.UniqueConstraint(fields=['booking', 'reviewer', 'type'], name='one_review_per_side'),
        ]

    def __str__(self):
        return f"{self.get_type_display()} review {self.id} ({self.overall}★) [{self.status}]"

    def save(self, *args, **kwargs):
        if self._state.adding and self.auto_publish_at is None:
            self.auto_publish_at = timezone.now() + timedelta(days=BLIND_REVIEW_WINDOW_DAYS)
        super().save(*args, **kwargs)

    @property
    def average_rating(self):
        """Mean of the sub-ratings that were given, else the overall rating."""
        given = [getattr(self, name) for name in SUB_RATINGS if getattr(self, name) is not None]
        if not given:
            return float(self.overall)
        return round(sum(given) / len(given), 1)

    @property
    def ratings(self):
        return {name: getattr(self, name) for name in ['overall'] + SUB_RATINGS}

    def toggle_helpful(self, user):
        """Add or remove `user`'s helpful vote. Returns True if the vote is now set."""
        if self.helpful_users.filter(pk=user.pk).exists():
            self.helpful_users.remove(user)
            self.helpful_count = max(0, self.helpful_count - 1)
            marked = False
        else:
            self.helpful_users.add(user)
            self.helpful_count += 1
            marked = True
        self.save(update_fields=['helpful_count', 'updated_at'])
        return marked
