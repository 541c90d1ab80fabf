# bookings/refunds.py
"""
Refund calculator.

Fee rules on cancellation:
- Guest service fee is kept by the platform, except inside the grace period
  (cancelled within 48h of booking and check-in at least 14 days away).
- Cleaning fee is refunded only when cancelling before check-in.
- The host keeps the unrefunded part of subtotal + cleaning fee, minus the
  host commission on that kept part.

Check-in and check-out are taken at the start of their day in the
project's time zone. All amounts are rounded half-up to whole units.
"""

import math
from datetime import datetime, time
from decimal import Decimal

from django.conf import settings
from django.utils import timezone
from django.utils.translation import gettext as _

from .pricing import round_amount

GRACE_PERIOD_HOURS_AFTER_BOOKING = 48
GRACE_PERIOD_MIN_DAYS_BEFORE_CHECK_IN = 14

# strict_long_term listings follow the super-strict schedule
POLICY_ALIASES = {
    'strict_long_term': 'super_strict',
}


def _start_of_day(day):
    return timezone.make_aware(datetime.combine(day, time.min))


def policy_refund_percent(policy, check_in, cancelled_at):
    hours_until = (check_in - cancelled_at).total_seconds() / 3600
    days_until = hours_until / 24
    policy = POLICY_ALIASES.get(policy, policy)

    if policy == 'flexible':
        return 100 if hours_until >= 24 else 0
    if policy == 'strict':
        if days_until >= 14:
            return 100
        if days_until >= 7:
            return 50
        return 0
    if policy == 'super_strict':
        if days_until >= 30:
            return 100
        if days_until >= 14:
            return 50
        return 0
    if policy == 'non_refundable':
        return 0
    # moderate, and anything unknown
    return 100 if days_until >= 5 else 50


def unused_nights_percent(check_in, departure, nights):
    if nights <= 0:
        return 0
    used = math.ceil((departure - check_in).total_seconds() / 86400)
    unused = max(0, nights - used)
    return round(unused / nights * 100)


def in_grace_period(booked_at, cancelled_at, check_in):
    if booked_at is None:
        return False
    hours_since_booking = (cancelled_at - booked_at).total_seconds() / 3600
    days_until_check_in = (check_in - cancelled_at).total_seconds() / 86400
    return (
        hours_since_booking <= GRACE_PERIOD_HOURS_AFTER_BOOKING
        and days_until_check_in >= GRACE_PERIOD_MIN_DAYS_BEFORE_CHECK_IN
    )


def calculate_refund(booking, cancelled_by='guest', cancelled_at=None, custom_percent=None):
    """
    Refund breakdown for cancelling `booking` at `cancelled_at` (default: now).
    `cancelled_by` is 'guest', 'host' or 'admin'; `custom_percent` overrides
    the subtotal percentage (admin decisions).
    """
    cancelled_at = cancelled_at or timezone.now()
    check_in = _start_of_day(booking.start_date)
    check_out = _start_of_day(booking.end_date)
    before_check_in = cancelled_at < check_in
    after_check_out = cancelled_at >= check_out
    policy = booking.listing.cancellation_policy or 'moderate'

    if custom_percent is not None:
        percent = max(0, min(100, int(custom_percent)))
    elif cancelled_by == 'host':
        percent = 100
    elif after_check_out:
        percent = 0
    elif before_check_in:
        percent = policy_refund_percent(policy, check_in, cancelled_at)
    else:
        percent = unused_nights_percent(check_in, cancelled_at, booking.nights)

    subtotal = Decimal(booking.subtotal)
    cleaning_fee = Decimal(booking.cleaning_fee)
    service_fee = Decimal(booking.service_fee)
    grace = in_grace_period(booking.created_at, cancelled_at, check_in)

    subtotal_refund = round_amount(subtotal * percent / 100)
    cleaning_fee_refund = cleaning_fee if before_check_in else Decimal('0')
    service_fee_refund = service_fee if grace else Decimal('0')
    total_refund = subtotal_refund + cleaning_fee_refund + service_fee_refund

    host_kept_base = (subtotal - subtotal_refund) + (cleaning_fee - cleaning_fee_refund)
    host_commission = round_amount(host_kept_base * Decimal(str(settings.HOST_COMMISSION_RATE)))
    host_receives = host_kept_base - host_commission
    platform_keeps = (service_fee - service_fee_refund) + host_commission

    return {
        'policy': policy,
        'cancelled_by': cancelled_by,
        'cancelled_at': cancelled_at.isoformat(),
        'is_before_check_in': before_check_in,
        'is_after_check_out': after_check_out,
        'is_during_stay': not before_check_in and not after_check_out,
        'grace_period_applied': grace,
        'subtotal_percent': percent,
        'refund': {
            'subtotal': subtotal_refund,
            'cleaning_fee': cleaning_fee_refund,
            'service_fee': service_fee_refund,
            'total': total_refund,
        },
        'distribution': {
            'guest_refund': total_refund,
            'host_receives': host_receives,
            'host_loss': subtotal_refund + cleaning_fee_refund,
            'host_commission_on_kept': host_commission,
            'platform_keeps': platform_keeps,
        },
        'summary': refund_summary(percent, before_check_in, cleaning_fee_refund, service_fee_refund, grace, cancelled_by),
    }


def refund_summary(percent, before_check_in, cleaning_fee_refund, service_fee_refund, grace, cancelled_by):
    if grace:
        parts = [_("48h grace period: full refund")]
    elif cancelled_by == 'host':
        parts = [_("Cancelled by the host: full refund")]
    elif percent == 100:
        parts = [_("Full refund of the stay")]
    elif percent == 0:
        parts = [_("No refund of the stay")]
    else:
        parts = [_("%(percent)s%% of the stay refunded") % {'percent': percent}]

    if cleaning_fee_refund > 0:
        parts.append(_("cleaning fee refunded"))
    elif not before_check_in:
        parts.append(_("cleaning fee not refunded (after check-in)"))

    if service_fee_refund > 0:
        parts.append(_("service fee refunded"))
    else:
        parts.append(_("service fee not refunded"))
    return '. '.join(parts) + '.'


def serialize_refund(breakdown):
    """JSON-friendly copy (Decimals as strings)."""
    def convert(value):
        if isinstance(value, dict):
            return {k: convert(v) for k, v in value.items()}
        if isinstance(value, Decimal):
            return str(value)
        return value
    return convert(breakdown)
