# platform_settings/decorators.py
from functools import wraps

from django.utils.translation import gettext as _
from rest_framework import status
from rest_framework.response import Response

from . import feature_flags


def current_features(request):
    features = getattr(request, 'features', None)
    if features is None:
        features = feature_flags.get_flags()['features']
    return features


def feature_disabled_response(feature_name):
    if feature_name == 'vehiclesEnabled':
        return Response({
            "error": _("Vehicle rentals are currently unavailable"),
            "code": "VEHICLES_DISABLED",
        }, status=status.HTTP_403_FORBIDDEN)
    return Response({
        "error": _("This feature is currently disabled"),
        "code": "FEATURE_DISABLED",
    }, status=status.HTTP_403_FORBIDDEN)


def require_feature(feature_name):
    """
    Block a view while `feature_name` is switched off.
    Usage: place below @api_view / @permission_classes.
    """
    def decorator(view_func):
        @wraps(view_func)
        def _wrapped(request, *args, **kwargs):
            if current_features(request).get(feature_name) is False:
                return feature_disabled_response(feature_name)
            return view_func(request, *args, **kwargs)
        return _wrapped
    return decorator
