# listings/serializers.py

from django.utils.translation import gettext as _
from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import BlockedPeriod, Listing

# Fields a host may write while editing a draft
EDITABLE_FIELDS = [
    'category', 'subcategory', 'title', 'description',
    'street', 'city', 'state', 'postal_code', 'latitude', 'longitude',
    'bedrooms', 'beds', 'bathrooms', 'area', 'floor', 'furnished', 'capacity', 'amenities',
    'make', 'model', 'year', 'transmission', 'fuel_type', 'seats', 'features',
    'base_price', 'currency', 'pricing_type', 'cleaning_fee', 'security_deposit',
    'alt_price', 'alt_currency',
    'instant_book', 'min_stay', 'max_stay', 'advance_notice', 'preparation_time',
    'check_in_from', 'check_in_to', 'check_out_before',
    'cancellation_policy',
    'smoking', 'pets', 'parties', 'children', 'additional_rules',
]


def _string_list(value, field):
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise serializers.ValidationError(_("%(field)s must be a list of strings") % {'field': field})
    return value


class ListingDraftSerializer(serializers.ModelSerializer):
    primary_image = serializers.ReadOnlyField()

    class Meta:
        model = Listing
        fields = ['id'] + EDITABLE_FIELDS + [
            'country', 'images', 'primary_image', 'status', 'current_step',
            'rejection_reason', 'slug', 'created_at', 'updated_at',
        ]
        read_only_fields = [
            'country', 'images', 'status', 'current_step',
            'rejection_reason', 'slug', 'created_at', 'updated_at',
        ]

    def validate_amenities(self, value):
        return _string_list(value, 'amenities')

    def validate_features(self, value):
        return _string_list(value, 'features')

    def validate_additional_rules(self, value):
        return _string_list(value, 'additional_rules')

    def validate(self, attrs):
        min_stay = attrs.get('min_stay', getattr(self.instance, 'min_stay', 1))
        max_stay = attrs.get('max_stay', getattr(self.instance, 'max_stay', 365))
        if min_stay and max_stay and min_stay > max_stay:
            raise serializers.ValidationError({"max_stay": _("max_stay must be greater than or equal to min_stay")})
        return attrs


class ListingCardSerializer(serializers.ModelSerializer):
    """Compact representation for search results and dashboards."""
    primary_image = serializers.ReadOnlyField()
    price_in_eur = serializers.ReadOnlyField()
    price_in_dzd = serializers.ReadOnlyField()
    is_coup_de_coeur = serializers.ReadOnlyField()

    class Meta:
        model = Listing
        fields = [
            'id', 'slug', 'category', 'subcategory', 'title', 'city', 'state',
            'latitude', 'longitude', 'base_price', 'currency', 'pricing_type',
            'price_in_eur', 'price_in_dzd', 'primary_image', 'instant_book',
            'average_rating', 'review_count', 'is_coup_de_coeur', 'featured',
            'status', 'views', 'bookings_count', 'created_at',
        ]


class BlockedPeriodSerializer(serializers.ModelSerializer):
    class Meta:
        model = BlockedPeriod
        fields = ['id', 'start_date', 'end_date', 'reason']

    def validate(self, attrs):
        if attrs['end_date'] < attrs['start_date']:
            raise serializers.ValidationError(_("end_date must be on or after start_date"))
        return attrs


class ListingDetailSerializer(serializers.ModelSerializer):
    """Public-facing detail of an active listing."""
    host = PublicUserSerializer(read_only=True)
    primary_image = serializers.ReadOnlyField()
    price_in_eur = serializers.ReadOnlyField()
    price_in_dzd = serializers.ReadOnlyField()
    is_coup_de_coeur = serializers.ReadOnlyField()
    blocked_periods = BlockedPeriodSerializer(many=True, read_only=True)

    class Meta:
        model = Listing
        exclude = ['is_deleted', 'deleted_at', 'deleted_by', 'current_step', 'rejection_reason']
