# reviews/views.py

import logging

from django.contrib.auth import get_user_model
from django.db import IntegrityError
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.pagination import PageNumberPagination
from rest_framework.permissions import AllowAny, IsAuthenticated, IsAuthenticatedOrReadOnly
from rest_framework.response import Response

from accounts.permissions import IsPlatformAdmin
from bookings.models import Booking
from bookings.serializers import BookingSerializer
from listings.models import Listing

from . import services
from .models import Review
from .serializers import ReviewCreateSerializer, ReviewResponseSerializer, ReviewSerializer, ReviewUpdateSerializer

logger = logging.getLogger(__name__)
User = get_user_model()


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def create_review(request):
    """
    API Endpoint: POST /api/reviews/
    The review waits until the other side has reviewed too (double-blind).
    """
    serializer = ReviewCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    data = dict(serializer.validated_data)

    booking = get_object_or_404(Booking, id=data.pop('booking'))
    if booking.status != 'completed':
        return Response({"error": _("You can only review completed bookings")}, status=status.HTTP_400_BAD_REQUEST)

    if request.user.id == booking.guest_id:
        review_type, reviewee_id = 'guest_to_host', booking.host_id
    elif request.user.id == booking.host_id:
        review_type, reviewee_id = 'host_to_guest', booking.guest_id
    else:
        return Response({"error": _("You are not part of this booking")}, status=status.HTTP_403_FORBIDDEN)

    requested_type = data.pop('type', None)
    if requested_type and requested_type != review_type:
        return Response({"error": _("Invalid review type for your role in this booking")},
                        status=status.HTTP_400_BAD_REQUEST)

    if Review.objects.filter(booking=booking, reviewer=request.user, type=review_type).exists():
        return Response({"error": _("You have already reviewed this booking")}, status=status.HTTP_400_BAD_REQUEST)

    try:
        review = Review.objects.create(
            booking=booking,
            listing_id=booking.listing_id,
            reviewer=request.user,
            reviewee_id=reviewee_id,
            type=review_type,
            **data,
        )
    except IntegrityError:
        return Response({"error": _("You have already reviewed this booking")}, status=status.HTTP_400_BAD_REQUEST)

    published = services.submit_review(review)
    review.refresh_from_db()
    return Response({
        "message": _("Both reviews are now published.") if published
        else _("Your review will be published once the other party has reviewed, or after 14 days."),
        "review": ReviewSerializer(review).data,
    }, status=status.HTTP_201_CREATED)


def _published_page(request, queryset):
    paginator = PageNumberPagination()
    page = paginator.paginate_queryset(queryset, request)
    return paginator, ReviewSerializer(page, many=True).data


@api_view(['GET'])
@permission_classes([AllowAny])
def listing_reviews(request, listing_id):
    listing = get_object_or_404(Listing, id=listing_id)
    queryset = Review.objects.filter(
        listing=listing, status='published', type='guest_to_host',
    ).select_related('reviewer', 'reviewee')
    paginator, data = _published_page(request, queryset)
    response = paginator.get_paginated_response(data)
    response.data['stats'] = services.listing_breakdown(listing.id)
    return response


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def host_reviews(request):
    """
    API Endpoint: GET /api/reviews/host/
    Every published guest review across the host's listings, with overall and per-listing stats.
    """
    listings = Listing.objects.filter(host=request.user)
    reviews = Review.objects.filter(
        listing__in=listings, status='published', type='guest_to_host',
    ).select_related('reviewer', 'reviewee', 'listing')

    per_listing = []
    for listing in listings:
        breakdown = services.listing_breakdown(listing.id)
        if breakdown['total_reviews']:
            per_listing.append({'listing_id': listing.id, 'title': listing.title, **breakdown})

    return Response({
        "stats": services.user_stats(request.user.id, 'host'),
        "listings": per_listing,
        "reviews": ReviewSerializer(reviews, many=True).data,
    })


@api_view(['GET'])
@permission_classes([AllowAny])
def user_reviews(request, user_id):
    """GET /api/reviews/user/<id>/?as=host|guest"""
    user = get_object_or_404(User, id=user_id)
    as_role = 'guest' if request.query_params.get('as') == 'guest' else 'host'
    review_type = 'guest_to_host' if as_role == 'host' else 'host_to_guest'
    reviews = Review.objects.filter(reviewee=user, status='published', type=review_type).select_related('reviewer')
    return Response({
        "stats": services.user_stats(user.id, as_role),
        "reviews": ReviewSerializer(reviews[:50], many=True).data,
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def respond_to_review(request, review_id):
    review = get_object_or_404(Review, id=review_id)
    if review.reviewee_id != request.user.id:
        return Response({"error": _("Only the reviewee can respond to this review")}, status=status.HTTP_403_FORBIDDEN)
    if review.response:
        return Response({"error": _("You have already responded to this review")}, status=status.HTTP_400_BAD_REQUEST)
    if review.status != 'published':
        return Response({"error": _("You can only respond to published reviews")}, status=status.HTTP_400_BAD_REQUEST)

    serializer = ReviewResponseSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    review.response = serializer.validated_data['response']
    review.responded_at = timezone.now()
    review.save(update_fields=['response', 'responded_at', 'updated_at'])
    return Response(ReviewSerializer(review).data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def mark_helpful(request, review_id):
    review = get_object_or_404(Review, id=review_id, status='published')
    marked = review.toggle_helpful(request.user)
    return Response({"helpful": marked, "helpful_count": review.helpful_count})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def flag_review(request, review_id):
    review = get_object_or_404(Review, id=review_id)
    review.status = 'flagged'
    review.flag_reason = request.data.get('reason') or 'other'
    review.save(update_fields=['status', 'flag_reason', 'updated_at'])
    services.refresh_stats_for(review)
    logger.warning(f"Review {review.id} flagged by {request.user.email}: {review.flag_reason}")
    return Response({"message": _("Review flagged successfully")})


@api_view(['POST'])
@permission_classes([IsPlatformAdmin])
def moderate_review(request, review_id):
    """Body: {"action": "hide"|"publish"}"""
    review = get_object_or_404(Review, id=review_id)
    action = request.data.get('action')
    if action == 'hide':
        services.hide_review(review)
    elif action == 'publish':
        services.publish_review(review)
    else:
        return Response({"error": _("action must be hide or publish")}, status=status.HTTP_400_BAD_REQUEST)
    return Response(ReviewSerializer(review).data)


@api_view(['GET', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticatedOrReadOnly])
def review_detail(request, review_id):
    """
    GET    → a published review; unpublished ones only to their author or an admin
    PATCH  → the author edits ratings, title or comment
    DELETE → the author or an admin removes the review
    """
    review = get_object_or_404(Review.objects.select_related('reviewer', 'reviewee'), id=review_id)
    user = request.user
    is_author = user.is_authenticated and review.reviewer_id == user.id
    is_admin = user.is_authenticated and user.is_platform_admin

    if request.method == 'GET':
        # A waiting review stays sealed until both sides have written theirs
        if review.status != 'published' and not (is_author or is_admin):
            return Response({"error": _("Review not found")}, status=status.HTTP_404_NOT_FOUND)
        return Response(ReviewSerializer(review).data)

    if request.method == 'DELETE':
        if not (is_author or is_admin):
            return Response({"error": _("Not authorized to delete this review")}, status=status.HTTP_403_FORBIDDEN)
        review.delete()
        services.refresh_stats_for(review)
        logger.info(f"Review {review_id} deleted by {user.email}")
        return Response(status=status.HTTP_204_NO_CONTENT)

    if not is_author:
        return Response({"error": _("Not authorized to update this review")}, status=status.HTTP_403_FORBIDDEN)

    serializer = ReviewUpdateSerializer(review, data=request.data, partial=True)
    if not serializer.is_valid():
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
    review = serializer.save(is_edited=True, edited_at=timezone.now())
    if review.status == 'published':
        services.refresh_stats_for(review)
    return Response(ReviewSerializer(review).data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def my_reviews(request):
    """GET /api/reviews/mine/?status=&min_rating=: reviews the user has written, in any state."""
    queryset = Review.objects.filter(reviewer=request.user).select_related('reviewer', 'reviewee')
    params = request.query_params
    if params.get('status'):
        queryset = queryset.filter(status=params['status'])
    if params.get('min_rating'):
        try:
            min_rating = int(params['min_rating'])
            if not 1 <= min_rating <= 5:
                raise ValueError(min_rating)
        except ValueError:
            return Response({"error": _("min_rating must be a number between 1 and 5")},
                            status=status.HTTP_400_BAD_REQUEST)
        queryset = queryset.filter(overall__gte=min_rating)
    paginator, data = _published_page(request, queryset)
    return paginator.get_paginated_response(data)


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def pending_reviews(request):
    """GET /api/reviews/pending/?as=guest|host: completed bookings still waiting for the user's review."""
    as_role = request.query_params.get('as')
    if as_role not in (None, 'guest', 'host'):
        return Response({"error": _("as must be guest or host")}, status=status.HTTP_400_BAD_REQUEST)

    pending = services.bookings_awaiting_review(request.user, as_role)
    return Response({
        "count": len(pending),
        "bookings": [
            {"review_type": review_type, "booking": BookingSerializer(booking).data}
            for booking, review_type in pending
        ],
    })
