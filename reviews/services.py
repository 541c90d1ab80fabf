# reviews/services.py
"""
Double-blind reviews.

Neither side sees the other's review until both have written theirs, or
until the blind window closes and the waiting review is published alone.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Avg, Count
from django.utils import timezone

from bookings.models import Booking
from listings.models import Listing

from .models import OPPOSITE_TYPE, SUB_RATINGS, Review

logger = logging.getLogger(__name__)
User = get_user_model()


def one_decimal(value):
    if value is None:
        return Decimal('0.0')
    return Decimal(str(value)).quantize(Decimal('0.1'), rounding=ROUND_HALF_UP)


def refresh_listing_stats(listing_id):
    stats = Review.objects.filter(listing_id=listing_id, status='published', type='guest_to_host').aggregate(
        average=Avg('overall'), count=Count('id'),
    )
    Listing.all_objects.filter(pk=listing_id).update(
        average_rating=one_decimal(stats['average']),
        review_count=stats['count'],
    )


def refresh_user_stats(user_id, review_type):
    stats = Review.objects.filter(reviewee_id=user_id, status='published', type=review_type).aggregate(
        average=Avg('overall'), count=Count('id'),
    )
    User.objects.filter(pk=user_id).update(
        average_rating=one_decimal(stats['average']),
        total_reviews=stats['count'],
    )


def refresh_stats_for(review):
    if review.type == 'guest_to_host':
        refresh_listing_stats(review.listing_id)
    refresh_user_stats(review.reviewee_id, review.type)


def find_paired_review(review):
    return Review.objects.filter(booking_id=review.booking_id, type=OPPOSITE_TYPE[review.type]).first()


def publish_pair(first, second):
    """Reveal both reviews of a booking at the same time."""
    now = timezone.now()
    with transaction.atomic():
        for review, other in ((first, second), (second, first)):
            review.status = 'published'
            review.blind_status = 'paired'
            review.published_at = now
            review.paired_review = other
            review.save(update_fields=['status', 'blind_status', 'published_at', 'paired_review', 'updated_at'])
    refresh_stats_for(first)
    refresh_stats_for(second)
    logger.info(f"Published review pair {first.id}/{second.id} for booking {first.booking_id}")


def submit_review(review):
    """
    Called right after a review is created. Publishes the pair when the
    other side has already reviewed a waiting review; otherwise the new
    review keeps waiting.
    """
    other = find_paired_review(review)
    if other is not None and other.status == 'waiting_pair':
        publish_pair(review, other)
        return True
    return False


def publish_review(review, blind_status=None):
    review.status = 'published'
    review.published_at = review.published_at or timezone.now()
    if blind_status:
        review.blind_status = blind_status
    review.save(update_fields=['status', 'published_at', 'blind_status', 'updated_at'])
    refresh_stats_for(review)


def hide_review(review):
    review.status = 'hidden'
    review.save(update_fields=['status', 'updated_at'])
    refresh_stats_for(review)


def auto_publish_due(now=None):
    """Publish waiting reviews whose blind window has closed. Returns how many."""
    now = now or timezone.now()
    due = Review.objects.filter(status='waiting_pair', blind_status='waiting', auto_publish_at__lte=now)
    count = 0
    for review in due:
        publish_review(review, blind_status='auto_published')
        logger.info(f"Auto-published review {review.id} (no paired review after the blind window)")
        count += 1
    return count


def listing_breakdown(listing_id):
    """Totals and per-category averages of a listing's published reviews (zeros when none)."""
    aggregates = {'total_reviews': Count('id'), 'overall': Avg('overall')}
    aggregates.update({name: Avg(name) for name in SUB_RATINGS})
    stats = Review.objects.filter(listing_id=listing_id, status='published', type='guest_to_host').aggregate(**aggregates)

    breakdown = {'total_reviews': stats.pop('total_reviews')}
    for name, value in stats.items():
        breakdown[f"average_{name}"] = float(one_decimal(value))
    return breakdown


def user_stats(user_id, as_role='host'):
    review_type = 'guest_to_host' if as_role == 'host' else 'host_to_guest'
    stats = Review.objects.filter(reviewee_id=user_id, status='published', type=review_type).aggregate(
        total_reviews=Count('id'), average_rating=Avg('overall'),
    )
    return {
        'total_reviews': stats['total_reviews'],
        'average_rating': float(one_decimal(stats['average_rating'])),
    }


def bookings_awaiting_review(user, as_role=None):
    """
    Completed bookings `user` has not reviewed yet, newest checkout first, as
    (booking, review_type) pairs. `as_role` limits them to 'guest' or 'host'.
    """
    sides = []
    if as_role in (None, 'guest'):
        sides.append(('guest', 'guest_to_host'))
    if as_role in (None, 'host'):
        sides.append(('host', 'host_to_guest'))

    pending = []
    for field, review_type in sides:
        reviewed = Review.objects.filter(reviewer=user, type=review_type).values('booking_id')
        bookings = (
            Booking.objects.filter(status='completed', **{field: user})
            .exclude(id__in=reviewed)
            .select_related('listing', 'guest', 'host')
        )
        pending.extend((booking, review_type) for booking in bookings)
    pending.sort(key=lambda item: item[0].end_date, reverse=True)
    return pending
