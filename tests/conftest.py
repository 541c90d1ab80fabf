from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone, translation
from rest_framework.test import APIClient

from accounts.models import User
from listings.models import Listing

PASSWORD = "Str0ngPass!2026"


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture(autouse=True)
def reset_language():
    yield
    translation.deactivate()


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def make_user(db):
    counter = {'n': 0}

    def _make(role='guest', **kwargs):
        counter['n'] += 1
        email = kwargs.pop('email', f"{role}{counter['n']}@example.com")
        kwargs.setdefault('first_name', role.title())
        kwargs.setdefault('last_name', f"User{counter['n']}")
        kwargs.setdefault('is_verified', True)
        return User.objects.create_user(email=email, password=PASSWORD, role=role, **kwargs)

    return _make


@pytest.fixture
def guest(make_user):
    return make_user('guest')


@pytest.fixture
def host(make_user):
    return make_user('host')


@pytest.fixture
def admin_user(make_user):
    return make_user('admin')


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client


@pytest.fixture
def make_listing(host):
    def _make(**kwargs):
        kwargs.setdefault('host', host)
        kwargs.setdefault('category', 'stay')
        kwargs.setdefault('subcategory', 'apartment')
        kwargs.setdefault('title', 'Sea view apartment')
        kwargs.setdefault('description', 'A bright apartment a short walk from the beach.')
        kwargs.setdefault('street', '12 Rue Didouche Mourad')
        kwargs.setdefault('city', 'Alger')
        kwargs.setdefault('state', 'Alger')
        kwargs.setdefault('latitude', 36.7538)
        kwargs.setdefault('longitude', 3.0588)
        kwargs.setdefault('bedrooms', 2)
        kwargs.setdefault('bathrooms', 1)
        kwargs.setdefault('capacity', 4)
        kwargs.setdefault('base_price', Decimal('10000'))
        kwargs.setdefault('cleaning_fee', Decimal('2000'))
        kwargs.setdefault('images', [{'url': 'https://img.example.com/1.jpg', 'caption': '', 'is_primary': True}])
        kwargs.setdefault('status', 'active')
        return Listing.objects.create(**kwargs)
    return _make


@pytest.fixture
def listing(make_listing):
    return make_listing()


@pytest.fixture
def future_dates():
    today = timezone.localdate()
    return today + timedelta(days=30), today + timedelta(days=33)
