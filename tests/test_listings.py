from datetime import timedelta
from decimal import Decimal
from unittest import mock

import pytest
import requests
from django.core.exceptions import ValidationError
from django.core.files.uploadedfile import SimpleUploadedFile
from django.utils import timezone

from bookings.models import Booking
from listings.models import DEFAULT_IMAGE, BlockedPeriod, Listing
from listings.utils import geocode_address, upload_listing_image
from platform_settings import feature_flags
from platform_settings.models import SystemSettings

pytestmark = pytest.mark.django_db


def disable(feature):
    SystemSettings.load().update_feature(feature, False)
    feature_flags.invalidate()


def make_booking(listing, guest, start, end, status='confirmed'):
    return Booking.objects.create(
        listing=listing, guest=guest, host=listing.host, start_date=start, end_date=end,
        base_price=listing.base_price, nights=(end - start).days, subtotal=listing.base_price * (end - start).days,
        total_amount=listing.base_price * (end - start).days, status=status,
    )


# --- Model ---

def test_published_listing_requires_coordinates(host):
    with pytest.raises(ValidationError):
        Listing.objects.create(host=host, title='No marker', status='active')
    with pytest.raises(ValidationError):
        Listing.objects.create(host=host, title='Zero marker', status='pending', latitude=0, longitude=0)


def test_slug_uses_title_and_id(listing):
    assert listing.slug == f"sea-view-apartment-{listing.id}"


def test_images_primary_handling(host):
    draft = Listing.objects.create(host=host)
    assert draft.primary_image == DEFAULT_IMAGE

    draft.add_image('https://img/a.jpg')
    draft.add_image('https://img/b.jpg')
    assert draft.primary_image == 'https://img/a.jpg'

    assert draft.remove_image('https://img/a.jpg')
    assert draft.primary_image == 'https://img/b.jpg'
    assert not draft.remove_image('https://img/missing.jpg')


def test_price_conversions(make_listing):
    listing = make_listing(base_price=Decimal('15000'))
    assert listing.price_in_eur == 100.0
    euro = make_listing(base_price=Decimal('80'), currency='EUR')
    assert euro.price_in_dzd == 12000


def test_coup_de_coeur(listing):
    listing.average_rating = Decimal('4.8')
    listing.review_count = 2
    assert not listing.is_coup_de_coeur
    listing.review_count = 3
    assert listing.is_coup_de_coeur


def test_approve_fills_coordinates_from_city(make_listing):
    listing = make_listing(status='draft', latitude=None, longitude=None, city='Oran', state='Oran')
    Listing.objects.filter(pk=listing.pk).update(status='pending')
    listing.refresh_from_db()

    assert listing.approve()
    assert listing.status == 'active'
    assert (listing.latitude, listing.longitude) == (35.6969, -0.6331)


def test_soft_deleted_listing_is_hidden(listing, host):
    listing.soft_delete(host)
    assert not Listing.objects.filter(pk=listing.pk).exists()
    assert Listing.all_objects.filter(pk=listing.pk).exists()
    listing.restore()
    assert Listing.objects.filter(pk=listing.pk).exists()


# --- Utilities ---

def test_geocode_address_returns_none_on_network_error():
    with mock.patch('listings.utils.requests.get', side_effect=requests.ConnectionError):
        assert geocode_address('Rue Larbi Ben M\'hidi, Oran') is None


def test_geocode_address_parses_first_result():
    fake = mock.Mock(status_code=200)
    fake.json.return_value = [{'lat': '35.7', 'lon': '-0.63'}]
    with mock.patch('listings.utils.requests.get', return_value=fake):
        assert geocode_address('Oran') == {'lat': 35.7, 'lng': -0.63}


def test_upload_falls_back_to_placeholder_when_cloudinary_fails():
    file = SimpleUploadedFile('photo.jpg', b'\xff\xd8\xff', content_type='image/jpeg')
    with mock.patch('listings.utils.cloudinary.uploader.upload', side_effect=Exception('no credentials')):
        url, service = upload_listing_image(file)
    assert service == 'mock-development-fallback'
    assert url


# --- Wizard endpoints ---

def test_guest_cannot_start_draft(client_for, guest):
    response = client_for(guest).post('/api/listings/drafts/', {'category': 'stay'}, format='json')
    assert response.status_code == 403
    assert response.data['code'] == 'HOST_REQUIRED'


def test_vehicle_draft_blocked_when_vertical_disabled(client_for, host):
    disable('vehiclesEnabled')
    response = client_for(host).post('/api/listings/drafts/', {'category': 'vehicle'}, format='json')
    assert response.status_code == 403
    assert response.data['code'] == 'VEHICLES_DISABLED'


def test_draft_autosave_and_wizard_flow(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', {'category': 'stay'}, format='json').data['id']

    state = client.post(f'/api/listings/drafts/{draft_id}/wizard/next/').data
    assert state['current_step'] == 'property-type'

    blocked = client.post(f'/api/listings/drafts/{draft_id}/wizard/next/')
    assert blocked.status_code == 400
    assert blocked.data['code'] == 'selectType'

    client.patch(f'/api/listings/drafts/{draft_id}/', {'subcategory': 'villa'}, format='json')
    state = client.post(f'/api/listings/drafts/{draft_id}/wizard/next/').data
    assert state['current_step'] == 'location'
    assert Listing.objects.get(pk=draft_id).current_step == 2

    state = client.post(f'/api/listings/drafts/{draft_id}/wizard/back/').data
    assert state['current_step'] == 'property-type'


def test_draft_rejects_min_stay_above_max_stay(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', format='json').data['id']
    response = client.patch(f'/api/listings/drafts/{draft_id}/', {'min_stay': 10, 'max_stay': 5}, format='json')
    assert response.status_code == 400


def test_submit_reports_first_incomplete_step(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', {'category': 'stay'}, format='json').data['id']

    response = client.post(f'/api/listings/drafts/{draft_id}/submit/')

    assert response.status_code == 400
    assert response.data['step'] == 'property-type'
    assert response.data['code'] == 'selectType'


def test_submit_complete_draft(client_for, host, make_listing):
    draft = make_listing(status='draft')
    response = client_for(host).post(f'/api/listings/drafts/{draft.id}/submit/')
    assert response.status_code == 200
    draft.refresh_from_db()
    assert draft.status == 'pending'


def test_draft_rejects_out_of_range_coordinates(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', {'category': 'stay'}, format='json').data['id']

    response = client.patch(f'/api/listings/drafts/{draft_id}/', {'latitude': 95.0}, format='json')
    assert response.status_code == 400
    assert 'latitude' in response.data

    response = client.patch(f'/api/listings/drafts/{draft_id}/', {'longitude': -181}, format='json')
    assert response.status_code == 400
    assert 'longitude' in response.data


def test_submit_with_out_of_range_coordinates_points_at_location_step(client_for, host, make_listing):
    # create() does not run field validators
    draft = make_listing(status='draft', latitude=95.0)
    response = client_for(host).post(f'/api/listings/drafts/{draft.id}/submit/')

    assert response.status_code == 400
    assert response.data['step'] == 'location'
    assert response.data['code'] == 'placeMarker'
    draft.refresh_from_db()
    assert draft.status == 'draft'


def test_image_upload(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', format='json').data['id']
    file = SimpleUploadedFile('photo.jpg', b'\xff\xd8\xff', content_type='image/jpeg')

    with mock.patch('listings.views.upload_listing_image', return_value=('https://res.cloudinary.com/x.jpg', 'cloudinary')):
        response = client.post(f'/api/listings/drafts/{draft_id}/images/', {'image': file}, format='multipart')

    assert response.status_code == 201
    assert response.data['primary_image'] == 'https://res.cloudinary.com/x.jpg'


def test_image_upload_rejects_other_types(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', format='json').data['id']
    file = SimpleUploadedFile('doc.pdf', b'%PDF', content_type='application/pdf')
    response = client.post(f'/api/listings/drafts/{draft_id}/images/', {'image': file}, format='multipart')
    assert response.status_code == 400


def test_geocode_endpoint_fills_location(client_for, host):
    client = client_for(host)
    draft_id = client.post('/api/listings/drafts/', format='json').data['id']

    with mock.patch('listings.views.geocode_address', return_value={'lat': 36.75, 'lng': 5.05}), \
            mock.patch('listings.views.reverse_geocode', return_value={'city': 'Béjaïa', 'state': 'Béjaïa'}):
        response = client.post(f'/api/listings/drafts/{draft_id}/geocode/', {'address': 'Rue de la Liberté'},
                               format='json')

    assert response.status_code == 200
    assert response.data['city'] == 'Béjaïa'
    assert response.data['latitude'] == 36.75


# --- Host management & moderation ---

def test_pause_and_activate(client_for, host, listing):
    client = client_for(host)
    assert client.post(f'/api/listings/{listing.id}/pause/').data['status'] == 'paused'
    assert client.post(f'/api/listings/{listing.id}/pause/').status_code == 400
    assert client.post(f'/api/listings/{listing.id}/activate/').data['status'] == 'active'


def test_blocked_dates_endpoint(client_for, host, listing):
    start = timezone.localdate() + timedelta(days=10)
    response = client_for(host).post(
        f'/api/listings/{listing.id}/blocked-dates/',
        {'start_date': str(start), 'end_date': str(start + timedelta(days=2)), 'reason': 'family'},
        format='json',
    )
    assert response.status_code == 201
    assert listing.is_date_blocked(start + timedelta(days=2))


def test_admin_moderation(client_for, admin_user, make_listing):
    listing = make_listing(status='pending')
    client = client_for(admin_user)

    assert client.post(f'/api/listings/{listing.id}/moderate/', {'action': 'reject'}, format='json').status_code == 400
    response = client.post(f'/api/listings/{listing.id}/moderate/', {'action': 'reject', 'reason': 'Blurry photos'},
                           format='json')
    assert response.data['status'] == 'inactive'

    listing.refresh_from_db()
    assert listing.rejection_reason == 'Blurry photos'


def test_approving_listing_with_bad_coordinates_is_refused(client_for, admin_user, make_listing):
    listing = make_listing(status='draft', latitude=120.0)
    Listing.objects.filter(pk=listing.pk).update(status='pending')

    response = client_for(admin_user).post(f'/api/listings/{listing.id}/moderate/', {'action': 'approve'},
                                           format='json')

    assert response.status_code == 400
    assert 'error' in response.data
    listing.refresh_from_db()
    assert listing.status == 'pending'


def test_activating_listing_with_bad_coordinates_is_refused(client_for, host, make_listing):
    listing = make_listing(status='draft', longitude=200.0)
    Listing.objects.filter(pk=listing.pk).update(status='paused')

    response = client_for(host).post(f'/api/listings/{listing.id}/activate/')
    assert response.status_code == 400


# --- Public search & detail ---

def test_search_shows_only_active_listings(api_client, make_listing):
    active = make_listing()
    make_listing(status='pending')
    ids = [item['id'] for item in api_client.get('/api/listings/').data['results']]
    assert ids == [active.id]


def test_search_hides_disabled_vertical(api_client, make_listing):
    make_listing()
    make_listing(category='vehicle', subcategory='car', seats=5)
    disable('vehiclesEnabled')

    results = api_client.get('/api/listings/').data['results']
    assert {item['category'] for item in results} == {'stay'}


def test_search_filters(api_client, make_listing):
    cheap = make_listing(base_price=Decimal('5000'), city='Béjaïa', state='Béjaïa', amenities=['wifi', 'parking'])
    make_listing(base_price=Decimal('20000'), amenities=['wifi'])

    def ids(params):
        return [item['id'] for item in api_client.get('/api/listings/', params).data['results']]

    assert ids({'city': 'bejaia'}) == [cheap.id]
    assert ids({'max_price': '8000'}) == [cheap.id]
    assert ids({'amenities': 'wifi,parking'}) == [cheap.id]
    assert api_client.get('/api/listings/', {'guests': 'many'}).status_code == 400


@pytest.mark.parametrize('params', [
    {'min_price': 'abc'},
    {'max_price': '12,5'},
    {'min_price': 'NaN'},
    {'max_price': 'Infinity'},
])
def test_search_rejects_malformed_price_filters(api_client, listing, params):
    response = api_client.get('/api/listings/', params)
    assert response.status_code == 400
    assert response.data['error'] == 'Invalid numeric filter'


def test_search_errors_are_translated(api_client, listing):
    response = api_client.get('/api/listings/', {'min_price': 'abc'}, HTTP_ACCEPT_LANGUAGE='fr')
    assert response.status_code == 400
    assert response.data['error'] == 'Filtre numérique invalide'


def test_search_accepts_decimal_price_filters(api_client, make_listing):
    cheap = make_listing(base_price=Decimal('5000'))
    make_listing(base_price=Decimal('20000'))
    results = api_client.get('/api/listings/', {'min_price': ' 4999.50 ', 'max_price': '5000.00'}).data['results']
    assert [item['id'] for item in results] == [cheap.id]


def test_search_excludes_booked_listings(api_client, make_listing, guest, future_dates):
    booked = make_listing()
    free = make_listing()
    start, end = future_dates
    make_booking(booked, guest, start, end)

    results = api_client.get('/api/listings/', {'check_in': str(start), 'check_out': str(end)}).data['results']
    assert [item['id'] for item in results] == [free.id]


def test_search_excludes_blocked_listings(api_client, listing, future_dates):
    start, end = future_dates
    BlockedPeriod.objects.create(listing=listing, start_date=start, end_date=start)
    results = api_client.get('/api/listings/', {'check_in': str(start), 'check_out': str(end)}).data['results']
    assert results == []


def test_detail_counts_views(api_client, listing):
    response = api_client.get(f'/api/listings/{listing.id}/')
    assert response.status_code == 200
    assert response.data['host']['id'] == listing.host_id
    listing.refresh_from_db()
    assert listing.views == 1


def test_detail_by_slug(api_client, listing):
    response = api_client.get(f'/api/listings/{listing.slug}/')
    assert response.status_code == 200
    assert response.data['id'] == listing.id


def test_vehicle_detail_blocked_when_disabled(api_client, make_listing):
    car = make_listing(category='vehicle', subcategory='car', seats=5)
    disable('vehiclesEnabled')
    response = api_client.get(f'/api/listings/{car.id}/')
    assert response.status_code == 403
    assert response.data['code'] == 'VEHICLES_DISABLED'


def test_delete_refused_with_upcoming_booking(client_for, host, listing, guest, future_dates):
    make_booking(listing, guest, *future_dates)
    response = client_for(host).delete(f'/api/listings/{listing.id}/')
    assert response.status_code == 400


def test_delete_is_soft(client_for, host, listing):
    response = client_for(host).delete(f'/api/listings/{listing.id}/')
    assert response.status_code == 204
    assert Listing.all_objects.get(pk=listing.id).is_deleted


def test_availability_endpoint(api_client, listing, future_dates):
    start, end = future_dates
    response = api_client.get(f'/api/listings/{listing.id}/availability/', {'start': str(start), 'end': str(end)})
    assert response.status_code == 200
    assert response.data['available'] is True
    assert response.data['quote']['nights'] == 3
