# bookings/availability.py
from django.utils.dateparse import parse_date

from listings.models import BlockedPeriod

from .models import Booking


def conflicting_bookings(listing, start, end, exclude=None):
    qs = Booking.objects.filter(listing=listing).blocking().overlapping(start, end)
    if exclude is not None:
        qs = qs.exclude(pk=exclude.pk)
    return qs


def is_available(listing, start, end, exclude=None):
    """Free when no confirmed/paid/active booking overlaps and no date is blocked."""
    if listing.blocked_between(start, end):
        return False
    return not conflicting_bookings(listing, start, end, exclude=exclude).exists()


def unavailable_listing_ids(start, end):
    """Listings with at least one booked or blocked night in [start, end)."""
    booked = Booking.objects.blocking().overlapping(start, end).values_list('listing_id', flat=True)
    blocked = BlockedPeriod.objects.filter(start_date__lt=end, end_date__gte=start).values_list('listing_id', flat=True)
    return set(booked) | set(blocked)


def parse_day(value):
    """'YYYY-MM-DD' → date, or None when missing or invalid."""
    try:
        return parse_date(value or '')
    except ValueError:
        return None
