# platform_settings/views.py
import logging

from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response

from accounts.permissions import IsPlatformAdmin

from . import feature_flags
from .models import FEATURE_FIELDS, SystemSettings
from .serializers import SystemSettingsSerializer

logger = logging.getLogger(__name__)


@api_view(['GET'])
@permission_classes([AllowAny])
def public_feature_flags(request):
    """
    API Endpoint: GET /api/settings/feature-flags/
    Current feature flags (public, cached).
    """
    flags = feature_flags.get_flags()
    return Response({
        "features": flags['features'],
        "version": flags['version'],
    })


@api_view(['GET'])
@permission_classes([IsPlatformAdmin])
def system_settings(request):
    """
    API Endpoint: GET /api/settings/system-settings/
    Full system settings including the audit trail.
    """
    settings_obj = SystemSettings.load()
    return Response(SystemSettingsSerializer(settings_obj).data)


@api_view(['PATCH'])
@permission_classes([IsPlatformAdmin])
def update_feature(request, feature_name):
    """
    API Endpoint: PATCH /api/settings/system-settings/features/<feature_name>/
    Body: {"enabled": bool, "reason": str}
    """
    if feature_name not in FEATURE_FIELDS:
        return Response({
            "error": _("Invalid feature name. Must be one of: %(names)s") % {'names': ", ".join(FEATURE_FIELDS)}
        }, status=status.HTTP_400_BAD_REQUEST)

    enabled = request.data.get('enabled')
    if not isinstance(enabled, bool):
        return Response({
            "error": _("enabled must be a boolean value")
        }, status=status.HTTP_400_BAD_REQUEST)

    settings_obj = SystemSettings.load()
    settings_obj.update_feature(feature_name, enabled, request.user, request.data.get('reason', ''))
    feature_flags.invalidate()

    logger.info(f"✅ Feature {feature_name} {'enabled' if enabled else 'disabled'} by admin {request.user.email}")

    return Response({
        "message": (
            _("Feature %(name)s enabled successfully") if enabled
            else _("Feature %(name)s disabled successfully")
        ) % {'name': feature_name},
        "features": settings_obj.features,
        "version": settings_obj.version,
    })


@api_view(['GET'])
@permission_classes([IsPlatformAdmin])
def cache_stats(request):
    """API Endpoint: GET /api/settings/cache-stats/"""
    return Response({"stats": feature_flags.get_stats()})


@api_view(['POST'])
@permission_classes([IsPlatformAdmin])
def invalidate_cache(request):
    """API Endpoint: POST /api/settings/cache/invalidate/"""
    fresh = feature_flags.invalidate()
    logger.info(f"✅ Feature flag cache manually invalidated by admin {request.user.email}")
    return Response({
        "message": _("Cache invalidated successfully"),
        "features": fresh['features'],
        "version": fresh['version'],
    })
