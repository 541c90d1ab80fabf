# bookings/pricing.py
"""
Price breakdown for a stay.

Fees are whole currency units. The guest pays the subtotal, the cleaning
fee and the guest service fee; the host receives the subtotal and the
cleaning fee minus the host commission.
"""

from decimal import ROUND_HALF_UP, Decimal

from django.conf import settings
from django.utils.translation import gettext as _

from .models import BookingError


def round_amount(value):
    return Decimal(value).quantize(Decimal('1'), rounding=ROUND_HALF_UP)


def nights_between(start, end):
    return (end - start).days


def quote(listing, start, end):
    nights = nights_between(start, end)
    if nights < 1:
        raise BookingError(_("Check-out must be at least one night after check-in"))

    guest_rate = Decimal(str(settings.GUEST_SERVICE_FEE_RATE))
    host_rate = Decimal(str(settings.HOST_COMMISSION_RATE))

    base_price = Decimal(listing.base_price)
    cleaning_fee = Decimal(listing.cleaning_fee or 0)
    subtotal = base_price * nights
    service_fee = round_amount(subtotal * guest_rate)
    host_commission = round_amount((subtotal + cleaning_fee) * host_rate)

    return {
        'base_price': base_price,
        'nights': nights,
        'subtotal': subtotal,
        'cleaning_fee': cleaning_fee,
        'service_fee': service_fee,
        'host_commission': host_commission,
        'total_amount': subtotal + cleaning_fee + service_fee,
        'host_payout': subtotal + cleaning_fee - host_commission,
        'security_deposit': Decimal(listing.security_deposit or 0),
        'currency': listing.currency,
    }


def serialize_quote(breakdown):
    """JSON-friendly copy of a quote (Decimals as strings)."""
    return {k: str(v) if isinstance(v, Decimal) else v for k, v in breakdown.items()}
