# bookings/services.py
import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone
from django.utils.translation import gettext as _

from listings.models import Listing
from platform_settings.feature_flags import vertical_enabled

from .availability import is_available
from .models import CANCELLABLE_STATUSES, Booking, BookingError
from .pricing import quote
from .refunds import calculate_refund

logger = logging.getLogger(__name__)


def create_booking(listing, guest, start, end, adults=1, children=0, infants=0,
                   special_requests='', features=None):
    """Validate every booking rule and create the booking. Raises BookingError."""
    if listing.status != 'active':
        raise BookingError(_("This listing is not available for booking"))
    if not vertical_enabled(listing.category, features):
        raise BookingError(_("This category is currently unavailable"))
    if listing.host_id == guest.id:
        raise BookingError(_("You cannot book your own listing"))
    if start < timezone.localdate():
        raise BookingError(_("Check-in date cannot be in the past"))
    if end <= start:
        raise BookingError(_("Check-out must be after check-in"))

    nights = (end - start).days
    if nights < listing.min_stay:
        raise BookingError(_("Minimum stay is %(n)s night(s)") % {'n': listing.min_stay})
    if listing.max_stay and nights > listing.max_stay:
        raise BookingError(_("Maximum stay is %(n)s night(s)") % {'n': listing.max_stay})

    if adults < 1:
        raise BookingError(_("At least one adult is required"))
    capacity = listing.guest_capacity
    if capacity and adults + children > capacity:
        raise BookingError(_("This listing accepts at most %(n)s guest(s)") % {'n': capacity})

    breakdown = quote(listing, start, end)

    with transaction.atomic():
        # Lock the listing row so two guests cannot take the same dates
        Listing.objects.select_for_update().filter(pk=listing.pk).first()
        if not is_available(listing, start, end):
            raise BookingError(_("These dates are not available"))

        booking = Booking.objects.create(
            listing=listing,
            guest=guest,
            host_id=listing.host_id,
            start_date=start,
            end_date=end,
            check_in_time=listing.check_in_from,
            check_out_time=listing.check_out_before,
            adults=adults,
            children=children,
            infants=infants,
            base_price=breakdown['base_price'],
            nights=breakdown['nights'],
            subtotal=breakdown['subtotal'],
            cleaning_fee=breakdown['cleaning_fee'],
            service_fee=breakdown['service_fee'],
            host_commission=breakdown['host_commission'],
            total_amount=breakdown['total_amount'],
            currency=breakdown['currency'],
            security_deposit=breakdown['security_deposit'],
            special_requests=special_requests or '',
            status='confirmed' if listing.instant_book else 'pending',
        )

    logger.info(f"Booking {booking.id} created for listing {listing.id} by {guest.email} [{booking.status}]")
    return booking


def respond_to_booking(booking, action, message=''):
    """Host accepts or declines a pending booking."""
    if booking.status != 'pending':
        raise BookingError(_("Only pending bookings can be accepted or declined"))

    if action == 'accept':
        with transaction.atomic():
            Listing.all_objects.select_for_update().filter(pk=booking.listing_id).first()
            if not is_available(booking.listing, booking.start_date, booking.end_date, exclude=booking):
                raise BookingError(_("These dates are no longer available"))
            booking.status = 'confirmed'
            booking.host_message = message or ''
            booking.responded_at = timezone.now()
            booking.save()
    elif action == 'decline':
        booking.status = 'cancelled_by_host'
        booking.cancelled_by = 'host'
        booking.cancelled_at = timezone.now()
        booking.cancellation_reason = message or ''
        booking.host_message = message or ''
        booking.responded_at = booking.cancelled_at
        booking.save()
    else:
        raise BookingError(_("action must be 'accept' or 'decline'"))

    logger.info(f"Booking {booking.id} host response ({action}) → {booking.status}")
    return booking


def cancel_booking(booking, role, reason='', custom_percent=None):
    """
    Cancel on behalf of `role` ('guest', 'host' or 'admin') and record the refund.
    Returns the refund breakdown.
    """
    if booking.status not in CANCELLABLE_STATUSES:
        raise BookingError(_("Cannot cancel a booking with status '%(status)s'") % {'status': booking.status})

    now = timezone.now()
    breakdown = calculate_refund(
        booking,
        cancelled_by=role,
        cancelled_at=now,
        custom_percent=custom_percent if role == 'admin' else None,
    )

    booking.status = f"cancelled_by_{role}"
    booking.cancelled_by = role
    booking.cancelled_at = now
    booking.cancellation_reason = reason or ''

    if booking.payment_status == 'paid':
        refund_total = breakdown['refund']['total']
        booking.refund_amount = refund_total
        booking.cancellation_details = {
            'subtotal_percent': breakdown['subtotal_percent'],
            'refund_total': str(refund_total),
            'host_receives': str(breakdown['distribution']['host_receives']),
            'platform_keeps': str(breakdown['distribution']['platform_keeps']),
            'grace_period_applied': breakdown['grace_period_applied'],
        }
        if refund_total > 0:
            booking.refunded_at = now
            booking.payment_status = 'refunded' if refund_total >= booking.paid_amount else 'partially_refunded'
    booking.save()

    logger.info(f"Booking {booking.id} cancelled by {role} (refund {booking.refund_amount})")
    return breakdown


def update_statuses(now=None):
    """
    Time-based transitions:
    paid → active on the start date, paid/active → completed after the end date,
    pending → expired once the host response deadline has passed.
    Returns a dict of counts.
    """
    now = now or timezone.now()
    today = timezone.localdate(now)
    deadline = now - timedelta(hours=settings.HOST_RESPONSE_DEADLINE_HOURS)

    activated = Booking.objects.filter(status='paid', start_date__lte=today, end_date__gt=today).update(status='active')

    completed = 0
    for booking in Booking.objects.filter(status__in=['paid', 'active'], end_date__lte=today):
        booking.status = 'completed'
        booking.completed_at = now
        booking.save(update_fields=['status', 'completed_at', 'updated_at'])
        Listing.all_objects.filter(pk=booking.listing_id).update(bookings_count=F('bookings_count') + 1)
        completed += 1

    expired = Booking.objects.filter(status='pending', created_at__lt=deadline).update(status='expired')

    return {'activated': activated, 'completed': completed, 'expired': expired}
