# bookings/serializers.py

from rest_framework import serializers

from accounts.serializers import PublicUserSerializer
from .models import PAYMENT_METHOD_CHOICES, Booking


class BookingListingSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    title = serializers.CharField()
    category = serializers.CharField()
    city = serializers.CharField()
    primary_image = serializers.CharField()
    cancellation_policy = serializers.CharField()


class BookingSerializer(serializers.ModelSerializer):
    listing = BookingListingSerializer(read_only=True)
    guest = PublicUserSerializer(read_only=True)
    host = PublicUserSerializer(read_only=True)
    total_guests = serializers.ReadOnlyField()
    host_payout = serializers.ReadOnlyField()

    class Meta:
        model = Booking
        fields = '__all__'


class BookingRequestSerializer(serializers.Serializer):
    """Input for quotes and new bookings."""
    listing = serializers.IntegerField()
    start_date = serializers.DateField()
    end_date = serializers.DateField()
    adults = serializers.IntegerField(min_value=1, default=1)
    children = serializers.IntegerField(min_value=0, default=0)
    infants = serializers.IntegerField(min_value=0, default=0)
    special_requests = serializers.CharField(max_length=500, required=False, allow_blank=True, default='')


class PaymentSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=PAYMENT_METHOD_CHOICES)
