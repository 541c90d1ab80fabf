from datetime import datetime, time, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from bookings import services
from bookings.availability import is_available
from bookings.models import Booking, BookingError
from bookings.pricing import quote
from bookings.refunds import calculate_refund, policy_refund_percent, unused_nights_percent
from listings.models import BlockedPeriod, Listing

pytestmark = pytest.mark.django_db


def at(day, hour=0):
    return timezone.make_aware(datetime.combine(day, time(hour)))


@pytest.fixture
def booking(listing, guest, future_dates):
    return services.create_booking(listing, guest, *future_dates)


# --- Pricing ---

def test_quote_breakdown(listing, future_dates):
    breakdown = quote(listing, *future_dates)

    assert breakdown['nights'] == 3
    assert breakdown['subtotal'] == Decimal('30000')
    assert breakdown['service_fee'] == Decimal('2400')       # 8% of the subtotal
    assert breakdown['host_commission'] == Decimal('960')    # 3% of subtotal + cleaning
    assert breakdown['total_amount'] == Decimal('34400')
    assert breakdown['host_payout'] == Decimal('31040')


def test_quote_requires_one_night(listing, future_dates):
    start, _end = future_dates
    with pytest.raises(BookingError):
        quote(listing, start, start)


def test_fees_are_rounded_half_up(make_listing, future_dates):
    listing = make_listing(base_price=Decimal('1006.25'), cleaning_fee=Decimal('0'))
    start, _end = future_dates
    breakdown = quote(listing, start, start + timedelta(days=1))
    assert breakdown['service_fee'] == Decimal('81')     # 80.5 → 81
    assert breakdown['host_commission'] == Decimal('30')


# --- Creation rules ---

def test_create_booking_snapshots_price(booking, listing):
    assert booking.status == 'pending'
    assert booking.host_id == listing.host_id
    assert booking.total_amount == Decimal('34400')
    assert booking.check_in_time == '15:00'


def test_instant_book_is_confirmed(make_listing, guest, future_dates):
    listing = make_listing(instant_book=True)
    assert services.create_booking(listing, guest, *future_dates).status == 'confirmed'


@pytest.mark.parametrize('kwargs, message', [
    ({'adults': 0}, 'adult'),
    ({'adults': 4, 'children': 1}, 'at most'),
])
def test_guest_count_rules(listing, guest, future_dates, kwargs, message):
    with pytest.raises(BookingError, match=message):
        services.create_booking(listing, guest, *future_dates, **kwargs)


def test_cannot_book_own_listing(listing, host, future_dates):
    with pytest.raises(BookingError):
        services.create_booking(listing, host, *future_dates)


def test_cannot_book_in_the_past(listing, guest):
    yesterday = timezone.localdate() - timedelta(days=1)
    with pytest.raises(BookingError):
        services.create_booking(listing, guest, yesterday, yesterday + timedelta(days=2))


def test_min_and_max_stay(make_listing, guest, future_dates):
    listing = make_listing(min_stay=4, max_stay=10)
    start, end = future_dates
    with pytest.raises(BookingError, match='Minimum'):
        services.create_booking(listing, guest, start, end)
    with pytest.raises(BookingError, match='Maximum'):
        services.create_booking(listing, guest, start, start + timedelta(days=11))


def test_inactive_listing_cannot_be_booked(make_listing, guest, future_dates):
    listing = make_listing(status='paused')
    with pytest.raises(BookingError):
        services.create_booking(listing, guest, *future_dates)


def test_vehicle_booking_refused_when_vertical_disabled(make_listing, guest, future_dates):
    car = make_listing(category='vehicle', subcategory='car', seats=5)
    with pytest.raises(BookingError):
        services.create_booking(car, guest, *future_dates, features={'vehiclesEnabled': False})


def test_overlapping_confirmed_booking_blocks_dates(make_listing, make_user, future_dates):
    listing = make_listing(instant_book=True)
    start, end = future_dates
    services.create_booking(listing, make_user(), start, end)

    with pytest.raises(BookingError, match='not available'):
        services.create_booking(listing, make_user(), start + timedelta(days=1), end + timedelta(days=1))
    # Check-out day is free for the next guest
    services.create_booking(listing, make_user(), end, end + timedelta(days=2))


def test_pending_bookings_do_not_block(listing, make_user, future_dates):
    services.create_booking(listing, make_user(), *future_dates)
    assert is_available(listing, *future_dates)


def test_blocked_period_blocks_dates(listing, future_dates):
    start, end = future_dates
    BlockedPeriod.objects.create(listing=listing, start_date=end - timedelta(days=1), end_date=end + timedelta(days=5))
    assert not is_available(listing, start, end)
    assert is_available(listing, start, end - timedelta(days=1))


# --- Host response & payment ---

def test_accept_and_pay(booking):
    services.respond_to_booking(booking, 'accept', 'Welcome!')
    assert booking.status == 'confirmed'
    assert booking.responded_at is not None

    booking.record_payment('cash')
    assert booking.status == 'paid'
    assert booking.paid_amount == booking.total_amount


def test_decline(booking):
    services.respond_to_booking(booking, 'decline', 'Not available')
    assert booking.status == 'cancelled_by_host'
    assert booking.cancelled_by == 'host'


def test_accept_refused_when_dates_taken(listing, make_user, future_dates):
    first = services.create_booking(listing, make_user(), *future_dates)
    second = services.create_booking(listing, make_user(), *future_dates)
    services.respond_to_booking(first, 'accept')
    with pytest.raises(BookingError):
        services.respond_to_booking(second, 'accept')


def test_pending_booking_cannot_be_paid(booking):
    with pytest.raises(BookingError):
        booking.record_payment('card')


# --- Refund policy ---

@pytest.mark.parametrize('policy, days_before, percent', [
    ('flexible', 2, 100),
    ('flexible', 0.5, 0),
    ('moderate', 5, 100),
    ('moderate', 4, 50),
    ('strict', 14, 100),
    ('strict', 7, 50),
    ('strict', 6, 0),
    ('strict_long_term', 30, 100),
    ('strict_long_term', 20, 50),
    ('strict_long_term', 10, 0),
    ('non_refundable', 60, 0),
])
def test_policy_schedules(policy, days_before, percent):
    check_in = at(timezone.localdate() + timedelta(days=90))
    cancelled_at = check_in - timedelta(days=days_before)
    assert policy_refund_percent(policy, check_in, cancelled_at) == percent


def test_unused_nights_percent():
    check_in = at(timezone.localdate())
    assert unused_nights_percent(check_in, check_in + timedelta(hours=30), 4) == 50
    assert unused_nights_percent(check_in, check_in, 0) == 0


def paid_booking(listing, guest, start, nights, created_at=None):
    booking = Booking.objects.create(
        listing=listing, guest=guest, host=listing.host,
        start_date=start, end_date=start + timedelta(days=nights),
        base_price=Decimal('10000'), nights=nights, subtotal=Decimal('10000') * nights,
        cleaning_fee=Decimal('2000'), service_fee=Decimal('800') * nights, host_commission=Decimal('0'),
        total_amount=Decimal('10000') * nights + Decimal('2000') + Decimal('800') * nights,
        status='paid', payment_status='paid',
    )
    booking.paid_amount = booking.total_amount
    booking.save()
    if created_at:
        Booking.objects.filter(pk=booking.pk).update(created_at=created_at)
        booking.refresh_from_db()
    return booking


def test_moderate_refund_before_check_in(listing, guest):
    start = timezone.localdate() + timedelta(days=10)
    booking = paid_booking(listing, guest, start, 3, created_at=timezone.now() - timedelta(days=5))

    result = calculate_refund(booking, cancelled_at=at(start) - timedelta(days=3))

    assert result['subtotal_percent'] == 50
    assert result['refund']['subtotal'] == Decimal('15000')
    assert result['refund']['cleaning_fee'] == Decimal('2000')
    assert result['refund']['service_fee'] == Decimal('0')
    assert result['refund']['total'] == Decimal('17000')
    assert result['distribution']['host_receives'] == Decimal('14550')   # 15000 minus 3%
    assert result['distribution']['platform_keeps'] == Decimal('2850')   # 2400 fee + 450 commission


def test_grace_period_refunds_service_fee(listing, guest):
    start = timezone.localdate() + timedelta(days=20)
    booking = paid_booking(listing, guest, start, 2)

    result = calculate_refund(booking)

    assert result['grace_period_applied'] is True
    assert result['refund']['service_fee'] == Decimal('1600')
    assert result['refund']['total'] == booking.total_amount


def test_host_cancellation_refunds_full_stay(listing, guest):
    start = timezone.localdate() + timedelta(days=2)
    booking = paid_booking(listing, guest, start, 2, created_at=timezone.now() - timedelta(days=10))
    result = calculate_refund(booking, cancelled_by='host')
    assert result['subtotal_percent'] == 100


def test_refund_during_stay_uses_unused_nights(listing, guest):
    start = timezone.localdate() + timedelta(days=40)
    booking = paid_booking(listing, guest, start, 4, created_at=timezone.now() - timedelta(days=10))

    result = calculate_refund(booking, cancelled_at=at(start, 12) + timedelta(days=1))

    assert result['is_during_stay'] is True
    assert result['subtotal_percent'] == 50
    assert result['refund']['cleaning_fee'] == Decimal('0')


def test_admin_custom_percent(listing, guest):
    start = timezone.localdate() + timedelta(days=3)
    booking = paid_booking(listing, guest, start, 2, created_at=timezone.now() - timedelta(days=10))
    result = calculate_refund(booking, cancelled_by='admin', custom_percent=130)
    assert result['subtotal_percent'] == 100


def test_cancel_records_refund(listing, guest):
    start = timezone.localdate() + timedelta(days=30)
    booking = paid_booking(listing, guest, start, 2)

    services.cancel_booking(booking, 'guest', reason='Plans changed')

    booking.refresh_from_db()
    assert booking.status == 'cancelled_by_guest'
    assert booking.payment_status == 'refunded'
    assert booking.refund_amount == booking.total_amount
    assert booking.cancellation_details['grace_period_applied'] is True


def test_completed_booking_cannot_be_cancelled(booking):
    Booking.objects.filter(pk=booking.pk).update(status='completed')
    booking.refresh_from_db()
    with pytest.raises(BookingError):
        services.cancel_booking(booking, 'guest')


# --- Lifecycle ---

def test_update_statuses(listing, make_user):
    today = timezone.localdate()
    running = paid_booking(listing, make_user(), today - timedelta(days=1), 3)
    finished = paid_booking(listing, make_user(), today - timedelta(days=5), 2)
    stale = Booking.objects.create(
        listing=listing, guest=make_user(), host=listing.host,
        start_date=today + timedelta(days=60), end_date=today + timedelta(days=62),
        base_price=Decimal('10000'), nights=2, subtotal=Decimal('20000'), total_amount=Decimal('20000'),
    )
    Booking.objects.filter(pk=stale.pk).update(created_at=timezone.now() - timedelta(hours=25))

    counts = services.update_statuses()

    assert counts == {'activated': 1, 'completed': 1, 'expired': 1}
    assert Booking.objects.get(pk=running.pk).status == 'active'
    assert Booking.objects.get(pk=finished.pk).status == 'completed'
    assert Booking.objects.get(pk=stale.pk).status == 'expired'
    assert Listing.objects.get(pk=listing.pk).bookings_count == 1


def test_completion_needs_both_confirmations(listing, guest):
    booking = paid_booking(listing, guest, timezone.localdate() - timedelta(days=3), 2)

    assert booking.confirm_completion('guest') is False
    assert booking.confirm_completion('host') is True
    assert booking.status == 'completed'


def test_completion_not_before_end_date(listing, guest):
    booking = paid_booking(listing, guest, timezone.localdate(), 2)
    with pytest.raises(BookingError):
        booking.confirm_completion('guest')


# --- API ---

def test_quote_endpoint(client_for, guest, listing, future_dates):
    start, end = future_dates
    response = client_for(guest).post('/api/bookings/quote/', {
        'listing': listing.id, 'start_date': str(start), 'end_date': str(end),
    }, format='json')
    assert response.status_code == 200
    assert Decimal(response.data['quote']['total_amount']) == Decimal('34400')
    assert response.data['available'] is True


def test_create_booking_endpoint(client_for, guest, listing, future_dates):
    start, end = future_dates
    response = client_for(guest).post('/api/bookings/', {
        'listing': listing.id, 'start_date': str(start), 'end_date': str(end), 'adults': 2,
    }, format='json')
    assert response.status_code == 201
    assert response.data['status'] == 'pending'
    assert response.data['listing']['id'] == listing.id


def test_create_booking_endpoint_reports_rule(client_for, host, listing, future_dates):
    start, end = future_dates
    response = client_for(host).post('/api/bookings/', {
        'listing': listing.id, 'start_date': str(start), 'end_date': str(end),
    }, format='json')
    assert response.status_code == 400
    assert 'error' in response.data


def test_booking_list_by_role(client_for, guest, host, booking):
    assert client_for(guest).get('/api/bookings/').data['count'] == 1
    assert client_for(host).get('/api/bookings/', {'role': 'host'}).data['count'] == 1
    assert client_for(host).get('/api/bookings/').data['count'] == 0


def test_only_participants_see_booking(client_for, make_user, booking):
    response = client_for(make_user()).get(f'/api/bookings/{booking.id}/')
    assert response.status_code == 403


def test_only_host_responds(client_for, guest, host, booking):
    assert client_for(guest).post(f'/api/bookings/{booking.id}/respond/', {'action': 'accept'}).status_code == 403
    response = client_for(host).post(f'/api/bookings/{booking.id}/respond/', {'action': 'accept'}, format='json')
    assert response.status_code == 200
    assert response.data['status'] == 'confirmed'


def test_cancel_endpoint(client_for, guest, booking):
    response = client_for(guest).post(f'/api/bookings/{booking.id}/cancel/', {'reason': 'Changed plans'},
                                      format='json')
    assert response.status_code == 200
    assert response.data['booking']['status'] == 'cancelled_by_guest'
    assert isinstance(response.data['refund']['refund']['total'], str)


def test_refund_preview_endpoint(client_for, guest, booking):
    response = client_for(guest).get(f'/api/bookings/{booking.id}/refund-preview/')
    assert response.status_code == 200
    assert response.data['cancelled_by'] == 'guest'
