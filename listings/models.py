# listings/models.py
from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models
from django.utils import timezone
from django.utils.text import slugify
from django.utils.translation import gettext as _

from cities.services import search_cities

CATEGORY_CHOICES = [
    ('stay', 'Stay'),
    ('vehicle', 'Vehicle'),
]

STAY_TYPES = ['apartment', 'house', 'villa', 'studio', 'room', 'riad', 'guesthouse', 'hotel_room']
VEHICLE_TYPES = ['car', 'motorcycle', 'truck', 'van', 'suv', 'bus', 'bicycle', 'scooter', 'boat']

SUBCATEGORIES = {
    'stay': STAY_TYPES,
    'vehicle': VEHICLE_TYPES,
}

SUBCATEGORY_CHOICES = [(t, t.replace('_', ' ').title()) for t in STAY_TYPES + VEHICLE_TYPES]

CURRENCY_CHOICES = [
    ('DZD', 'Algerian Dinar'),
    ('EUR', 'Euro'),
]

PRICING_TYPE_CHOICES = [
    ('per_night', 'Per Night'),
    ('per_day', 'Per Day'),
    ('per_week', 'Per Week'),
    ('per_month', 'Per Month'),
    ('per_hour', 'Per Hour'),
]

TRANSMISSION_CHOICES = [
    ('manual', 'Manual'),
    ('automatic', 'Automatic'),
]

FUEL_TYPE_CHOICES = [
    ('gasoline', 'Gasoline'),
    ('diesel', 'Diesel'),
    ('electric', 'Electric'),
    ('hybrid', 'Hybrid'),
]

CANCELLATION_POLICY_CHOICES = [
    ('flexible', 'Flexible'),
    ('moderate', 'Moderate'),
    ('strict', 'Strict'),
    ('strict_long_term', 'Strict (long term)'),
    ('non_refundable', 'Non-refundable'),
]

RULE_CHOICES = [
    ('allowed', 'Allowed'),
    ('not_allowed', 'Not allowed'),
]

STATUS_CHOICES = [
    ('draft', 'Draft'),
    ('pending', 'Pending'),
    ('active', 'Active'),
    ('paused', 'Paused'),
    ('inactive', 'Inactive'),
    ('blocked', 'Blocked'),
]

DEFAULT_IMAGE = '/uploads/listings/default.jpg'
EUR_TO_DZD_RATE = 150


class ListingQuerySet(models.QuerySet):
    def live(self):
        return self.filter(status='active')


class ListingManager(models.Manager.from_queryset(ListingQuerySet)):
    """Hides soft-deleted listings."""

    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class Listing(models.Model):
    host = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='listings')

    # Category
    category = models.CharField(max_length=10, choices=CATEGORY_CHOICES, blank=True)
    subcategory = models.CharField(max_length=20, choices=SUBCATEGORY_CHOICES, blank=True)

    # Basic info
    title = models.CharField(max_length=100, blank=True)
    description = models.TextField(max_length=2000, blank=True)

    # Location
    street = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=100, blank=True)
    state = models.CharField(max_length=100, blank=True)
    postal_code = models.CharField(max_length=20, blank=True)
    country = models.CharField(max_length=100, default='Algeria')
    latitude = models.FloatField(null=True, blank=True, validators=[MinValueValidator(-90), MaxValueValidator(90)])
    longitude = models.FloatField(null=True, blank=True, validators=[MinValueValidator(-180), MaxValueValidator(180)])

    # Stay details
    bedrooms = models.PositiveIntegerField(default=0)
    beds = models.PositiveIntegerField(default=0)
    bathrooms = models.PositiveIntegerField(default=0)
    area = models.PositiveIntegerField(null=True, blank=True, help_text="Square meters")
    floor = models.IntegerField(null=True, blank=True)
    furnished = models.BooleanField(default=False)
    capacity = models.PositiveIntegerField(default=1)
    amenities = models.JSONField(default=list, blank=True)

    # Vehicle details
    make = models.CharField(max_length=50, blank=True)
    model = models.CharField(max_length=50, blank=True)
    year = models.PositiveIntegerField(null=True, blank=True)
    transmission = models.CharField(max_length=10, choices=TRANSMISSION_CHOICES, blank=True)
    fuel_type = models.CharField(max_length=10, choices=FUEL_TYPE_CHOICES, blank=True)
    seats = models.PositiveIntegerField(null=True, blank=True)
    features = models.JSONField(default=list, blank=True)

    # Pricing
    base_price = models.DecimalField(max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, default='DZD')
    pricing_type = models.CharField(max_length=10, choices=PRICING_TYPE_CHOICES, default='per_night')
    cleaning_fee = models.DecimalField(max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    security_deposit = models.DecimalField(max_digits=12, decimal_places=2, default=0, validators=[MinValueValidator(0)])
    alt_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    alt_currency = models.CharField(max_length=3, choices=CURRENCY_CHOICES, blank=True)

    # Availability
    instant_book = models.BooleanField(default=False)
    min_stay = models.PositiveIntegerField(default=1)
    max_stay = models.PositiveIntegerField(default=365)
    advance_notice = models.PositiveIntegerField(default=0, help_text="Days")
    preparation_time = models.PositiveIntegerField(default=0, help_text="Days")
    check_in_from = models.CharField(max_length=5, default='15:00')
    check_in_to = models.CharField(max_length=5, default='21:00')
    check_out_before = models.CharField(max_length=5, default='11:00')

    cancellation_policy = models.CharField(max_length=20, choices=CANCELLATION_POLICY_CHOICES, default='moderate')

    # House rules
    smoking = models.CharField(max_length=12, choices=RULE_CHOICES, default='not_allowed')
    pets = models.CharField(max_length=12, choices=RULE_CHOICES, default='not_allowed')
    parties = models.CharField(max_length=12, choices=RULE_CHOICES, default='not_allowed')
    children = models.CharField(max_length=12, choices=RULE_CHOICES, default='allowed')
    additional_rules = models.JSONField(default=list, blank=True)

    # Media: [{"url": ..., "caption": ..., "is_primary": bool}]
    images = models.JSONField(default=list, blank=True)

    # Status & wizard
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default='draft')
    current_step = models.PositiveIntegerField(default=0)
    rejection_reason = models.TextField(blank=True)
    featured = models.BooleanField(default=False)
    slug = models.SlugField(max_length=120, unique=True, blank=True, null=True)

    # Stats
    views = models.PositiveIntegerField(default=0)
    bookings_count = models.PositiveIntegerField(default=0)
    average_rating = models.DecimalField(max_digits=2, decimal_places=1, default=0,
                                         validators=[MinValueValidator(0), MaxValueValidator(5)])
    review_count = models.PositiveIntegerField(default=0)

    # Soft delete
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = ListingManager()
    all_objects = models.Manager()

    class Meta:
        ordering = ['-featured', '-created_at']
        indexes = [
            models.Index(fields=['category', 'subcategory']),
            models.Index(fields=['status']),
        ]

    def __str__(self):
        return f"{self.title or 'Untitled'} [{self.get_status_display()}]"

    # --- Coordinates ---

    @property
    def has_coordinates(self):
        """(0, 0) and missing values both mean the marker was never placed."""
        if self.latitude is None or self.longitude is None:
            return False
        return not (self.latitude == 0 and self.longitude == 0)

    @property
    def coordinates_in_range(self):
        return self.has_coordinates and -90 <= self.latitude <= 90 and -180 <= self.longitude <= 180

    def clean(self):
        if self.status in ('draft', 'inactive'):
            return
        if not self.has_coordinates:
            raise ValidationError(_("Valid coordinates are required for published listings"))
        if not self.coordinates_in_range:
            raise ValidationError(_("Invalid coordinates: latitude must be [-90, 90], longitude [-180, 180]"))

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)
        if self.title:
            slug = f"{slugify(self.title)[:100] or 'listing'}-{self.pk}"
            if slug != self.slug:
                self.slug = slug
                type(self).all_objects.filter(pk=self.pk).update(slug=slug)

    def fill_coordinates_from_city(self):
        """Fall back to the city centre from the reference table."""
        for name in (self.city, self.state):
            matches = search_cities(name or '', limit=1)
            if matches:
                self.latitude, self.longitude = matches[0]['coordinates']
                return True
        return False

    # --- Derived values ---

    @property
    def primary_image(self):
        if not self.images:
            return DEFAULT_IMAGE
        for image in self.images:
            if image.get('is_primary'):
                return image['url']
        return self.images[0]['url']

    @property
    def price_in_eur(self):
        if self.currency == 'EUR':
            return float(self.base_price)
        return round(float(self.base_price) / EUR_TO_DZD_RATE, 2)

    @property
    def price_in_dzd(self):
        if self.currency == 'DZD':
            return float(self.base_price)
        return round(float(self.base_price) * EUR_TO_DZD_RATE)

    @property
    def is_coup_de_coeur(self):
        return float(self.average_rating) >= 4.7 and self.review_count >= 3

    @property
    def guest_capacity(self):
        if self.category == 'vehicle':
            return self.seats or 0
        return self.capacity

    @property
    def has_draft_content(self):
        return bool(self.category or self.title or self.images)

    # --- Images ---

    def add_image(self, url, caption=''):
        """Append an image; the first one becomes primary."""
        if not isinstance(self.images, list):
            self.images = []
        if url and all(img['url'] != url for img in self.images):
            self.images.append({
                'url': url,
                'caption': caption,
                'is_primary': not self.images,
            })
        self.save(update_fields=['images', 'updated_at'])

    def remove_image(self, url):
        if not isinstance(self.images, list):
            return False
        remaining = [img for img in self.images if img['url'] != url]
        if len(remaining) == len(self.images):
            return False
        if remaining and not any(img.get('is_primary') for img in remaining):
            remaining[0]['is_primary'] = True
        self.images = remaining
        self.save(update_fields=['images', 'updated_at'])
        return True

    # --- Availability ---

    def is_date_blocked(self, day):
        return self.blocked_periods.filter(start_date__lte=day, end_date__gte=day).exists()

    def blocked_between(self, start, end):
        """Any blocked period touching the nights [start, end)."""
        return self.blocked_periods.filter(start_date__lt=end, end_date__gte=start).exists()

    # --- Lifecycle ---

    def soft_delete(self, user):
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.deleted_by = user
        self.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'updated_at'])

    def restore(self):
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.save(update_fields=['is_deleted', 'deleted_at', 'deleted_by', 'updated_at'])

    def approve(self):
        if self.status != 'pending':
            return False
        if not self.has_coordinates:
            self.fill_coordinates_from_city()
        self.status = 'active'
        self.rejection_reason = ''
        self.save()
        return True

    def reject(self, reason=""):
        if self.status != 'pending':
            return False
        self.status = 'inactive'
        self.rejection_reason = reason
        self.save()
        return True

    def block(self, reason=""):
        self.status = 'blocked'
        if reason:
            self.rejection_reason = reason
        self.save()


class BlockedPeriod(models.Model):
    """Dates the host closed manually. Both ends are inclusive."""
    listing = models.ForeignKey(Listing, on_delete=models.CASCADE, related_name='blocked_periods')
    start_date = models.DateField()
    end_date = models.DateField()
    reason = models.CharField(max_length=200, blank=True)

    class Meta:
        ordering = ['start_date']

    def __str__(self):
        return f"{self.listing_id}: {self.start_date} → {self.end_date}"
