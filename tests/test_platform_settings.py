from unittest import mock

import pytest
from django.db import DatabaseError
from django.test import RequestFactory
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from platform_settings import feature_flags
from platform_settings.decorators import require_feature
from platform_settings.models import MAX_HISTORY_ENTRIES, FeatureChange, SystemSettings

pytestmark = pytest.mark.django_db

FEATURE_URL = '/api/settings/system-settings/features/{}/'


def test_load_returns_singleton():
    first = SystemSettings.load()
    second = SystemSettings.load()
    assert first.pk == second.pk == SystemSettings.SINGLETON_ID
    assert first.features == {'vehiclesEnabled': True, 'accommodationsEnabled': True}


def test_update_feature_bumps_version_and_records_history(admin_user):
    settings_obj = SystemSettings.load()
    settings_obj.update_feature('vehiclesEnabled', False, admin_user, 'maintenance')

    settings_obj.refresh_from_db()
    assert settings_obj.vehicles_enabled is False
    assert settings_obj.version == 2
    change = settings_obj.history.get()
    assert change.field == 'features.vehiclesEnabled'
    assert change.old_value is True
    assert change.new_value is False
    assert change.reason == 'maintenance'


def test_update_feature_rejects_unknown_name():
    with pytest.raises(ValueError):
        SystemSettings.load().update_feature('boatsEnabled', True)


def test_history_is_trimmed():
    settings_obj = SystemSettings.load()
    for i in range(MAX_HISTORY_ENTRIES + 5):
        settings_obj.update_feature('vehiclesEnabled', i % 2 == 0)
    assert FeatureChange.objects.count() == MAX_HISTORY_ENTRIES


def test_flags_are_cached_until_invalidated():
    assert feature_flags.get_flags()['features']['vehiclesEnabled'] is True

    SystemSettings.objects.filter(pk=1).update(vehicles_enabled=False)
    assert feature_flags.is_feature_enabled('vehiclesEnabled') is True

    feature_flags.invalidate()
    assert feature_flags.is_feature_enabled('vehiclesEnabled') is False


def test_unknown_feature_counts_as_enabled():
    assert feature_flags.is_feature_enabled('somethingNew') is True


def test_database_failure_falls_back_to_last_known_flags():
    settings_obj = SystemSettings.load()
    settings_obj.update_feature('accommodationsEnabled', False)
    feature_flags.invalidate()

    with mock.patch.object(SystemSettings, 'load', side_effect=DatabaseError('down')):
        flags = feature_flags.invalidate()

    assert flags['features']['accommodationsEnabled'] is False


def test_database_failure_without_cache_uses_safe_defaults():
    with mock.patch.object(SystemSettings, 'load', side_effect=DatabaseError('down')):
        flags = feature_flags.get_flags()
    assert flags['features'] == {'vehiclesEnabled': True, 'accommodationsEnabled': True}
    assert flags['version'] == 0


def test_cache_stats():
    assert feature_flags.get_stats()['cached'] is False
    feature_flags.get_flags()
    stats = feature_flags.get_stats()
    assert stats['cached'] is True
    assert stats['valid'] is True


def test_vertical_helpers():
    features = {'vehiclesEnabled': False, 'accommodationsEnabled': True}
    assert feature_flags.vertical_enabled('vehicle', features) is False
    assert feature_flags.vertical_enabled('stay', features) is True
    assert feature_flags.vertical_enabled('', features) is True
    assert feature_flags.disabled_categories(features) == ['vehicle']


def test_require_feature_decorator():
    @api_view(['GET'])
    @permission_classes([AllowAny])
    @require_feature('vehiclesEnabled')
    def vehicles_only(request):
        return Response({"ok": True})

    SystemSettings.load().update_feature('vehiclesEnabled', False)
    feature_flags.invalidate()

    response = vehicles_only(RequestFactory().get('/'))
    assert response.status_code == 403
    assert response.data['code'] == 'VEHICLES_DISABLED'


def test_public_flags_endpoint(api_client):
    response = api_client.get('/api/settings/feature-flags/')
    assert response.status_code == 200
    assert response.data['features']['accommodationsEnabled'] is True


def test_admin_can_toggle_feature(client_for, admin_user, api_client):
    response = client_for(admin_user).patch(
        FEATURE_URL.format('vehiclesEnabled'), {'enabled': False, 'reason': 'fleet audit'}, format='json',
    )

    assert response.status_code == 200
    assert response.data['features']['vehiclesEnabled'] is False
    # The public endpoint sees the change immediately
    assert api_client.get('/api/settings/feature-flags/').data['features']['vehiclesEnabled'] is False


def test_toggle_validates_input(client_for, admin_user):
    client = client_for(admin_user)
    assert client.patch(FEATURE_URL.format('boatsEnabled'), {'enabled': True}, format='json').status_code == 400
    assert client.patch(FEATURE_URL.format('vehiclesEnabled'), {'enabled': 'no'}, format='json').status_code == 400


def test_toggle_requires_admin(client_for, host):
    response = client_for(host).patch(FEATURE_URL.format('vehiclesEnabled'), {'enabled': False}, format='json')
    assert response.status_code == 403
    assert response.data['detail'] == 'Admin access required.'


def test_toggle_messages_are_translated(client_for, admin_user):
    client = client_for(admin_user)
    response = client.patch(FEATURE_URL.format('vehiclesEnabled'), {'enabled': False},
                            format='json', HTTP_ACCEPT_LANGUAGE='fr')
    assert response.data['message'] == 'Fonctionnalité vehiclesEnabled désactivée avec succès'

    response = client.patch(FEATURE_URL.format('vehiclesEnabled'), {'enabled': 'no'},
                            format='json', HTTP_ACCEPT_LANGUAGE='ar')
    assert response.data['error'] == 'يجب أن تكون قيمة enabled منطقية'


def test_system_settings_includes_history(client_for, admin_user):
    SystemSettings.load().update_feature('vehiclesEnabled', False, admin_user, 'test')
    response = client_for(admin_user).get('/api/settings/system-settings/')
    assert response.status_code == 200
    assert response.data['change_history'][0]['changed_by']['email'] == admin_user.email
