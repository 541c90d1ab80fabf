# bookings/views.py

import logging

from django.shortcuts import get_object_or_404
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from listings.models import Listing
from platform_settings.decorators import current_features, feature_disabled_response
from platform_settings.feature_flags import feature_for_category, vertical_enabled

from . import services
from .availability import is_available
from .models import Booking, BookingError
from .pricing import quote, serialize_quote
from .refunds import calculate_refund, serialize_refund
from .serializers import BookingRequestSerializer, BookingSerializer, PaymentSerializer

logger = logging.getLogger(__name__)


def _get_booking_for(request, booking_id):
    """The booking if the user is its guest, its host or an admin; else None."""
    booking = get_object_or_404(Booking.objects.select_related('listing', 'guest', 'host'), id=booking_id)
    if not booking.is_participant(request.user):
        return None
    return booking


def _forbidden():
    return Response({"error": _("You don't have permission to access this booking.")},
                    status=status.HTTP_403_FORBIDDEN)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def booking_quote(request):
    """
    API Endpoint: POST /api/bookings/quote/
    Price breakdown for a stay, nothing is created.
    """
    serializer = BookingRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    listing = get_object_or_404(Listing.objects.live(), id=data['listing'])
    if not vertical_enabled(listing.category, current_features(request)):
        return feature_disabled_response(feature_for_category(listing.category))

    try:
        breakdown = quote(listing, data['start_date'], data['end_date'])
    except BookingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        "quote": serialize_quote(breakdown),
        "available": is_available(listing, data['start_date'], data['end_date']),
    })


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def bookings(request):
    """
    GET  /api/bookings/?role=guest|host&status=  → the user's bookings
    POST /api/bookings/                          → create a booking
    """
    if request.method == 'GET':
        role = request.query_params.get('role', 'guest')
        if role == 'host':
            queryset = Booking.objects.filter(host=request.user)
        else:
            queryset = Booking.objects.filter(guest=request.user)
        status_filter = request.query_params.get('status')
        if status_filter:
            queryset = queryset.filter(status=status_filter)
        queryset = queryset.select_related('listing', 'guest', 'host')

        paginator = PageNumberPagination()
        page = paginator.paginate_queryset(queryset, request)
        return paginator.get_paginated_response(BookingSerializer(page, many=True).data)

    serializer = BookingRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = serializer.validated_data

    listing = get_object_or_404(Listing, id=data['listing'])
    features = current_features(request)
    if not vertical_enabled(listing.category, features):
        return feature_disabled_response(feature_for_category(listing.category))

    try:
        booking = services.create_booking(
            listing,
            request.user,
            data['start_date'],
            data['end_date'],
            adults=data['adults'],
            children=data['children'],
            infants=data['infants'],
            special_requests=data['special_requests'],
            features=features,
        )
    except BookingError as e:
        logger.warning(f"Booking rejected for {request.user.email} on listing {listing.id}: {e}")
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def booking_detail(request, booking_id):
    booking = _get_booking_for(request, booking_id)
    if booking is None:
        return _forbidden()
    return Response(BookingSerializer(booking).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def booking_respond(request, booking_id):
    """
    API Endpoint: POST /api/bookings/<id>/respond/
    Body: {"action": "accept"|"decline", "message": str}
    """
    booking = _get_booking_for(request, booking_id)
    if booking is None or booking.host_id != request.user.id:
        return _forbidden()

    try:
        services.respond_to_booking(booking, request.data.get('action'), request.data.get('message', ''))
    except BookingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(BookingSerializer(booking).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def booking_pay(request, booking_id):
    """
    API Endpoint: POST /api/bookings/<id>/pay/
    Records the payment method; the payment gateway itself is not part of this API.
    """
    booking = _get_booking_for(request, booking_id)
    if booking is None or booking.guest_id != request.user.id:
        return _forbidden()

    serializer = PaymentSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    try:
        booking.record_payment(serializer.validated_data['payment_method'])
    except BookingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    logger.info(f"Booking {booking.id} paid by {request.user.email} ({booking.payment_method})")
    return Response(BookingSerializer(booking).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def booking_cancel(request, booking_id):
    """
    API Endpoint: POST /api/bookings/<id>/cancel/
    Body: {"reason": str, "refund_percent": int (admins only)}
    """
    booking = _get_booking_for(request, booking_id)
    if booking is None:
        return _forbidden()

    role = booking.role_of(request.user)
    custom_percent = request.data.get('refund_percent') if role == 'admin' else None
    try:
        breakdown = services.cancel_booking(
            booking,
            role,
            reason=request.data.get('reason', ''),
            custom_percent=custom_percent,
        )
    except (BookingError, ValueError) as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    return Response({
        "message": _("The booking has been cancelled."),
        "booking": BookingSerializer(booking).data,
        "refund": serialize_refund(breakdown),
    })


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def refund_preview(request, booking_id):
    """What a cancellation by the current user would refund right now."""
    booking = _get_booking_for(request, booking_id)
    if booking is None:
        return _forbidden()
    breakdown = calculate_refund(booking, cancelled_by=booking.role_of(request.user))
    return Response(serialize_refund(breakdown))


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def confirm_completion(request, booking_id):
    booking = _get_booking_for(request, booking_id)
    role = booking.role_of(request.user) if booking else None
    if role not in ('guest', 'host'):
        return _forbidden()

    try:
        completed = booking.confirm_completion(role)
    except BookingError as e:
        return Response({"error": str(e)}, status=status.HTTP_400_BAD_REQUEST)

    if completed:
        logger.info(f"Booking {booking.id} completed")
    return Response({
        "completed": booking.status == 'completed',
        "booking": BookingSerializer(booking).data,
    })
