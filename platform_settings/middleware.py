# platform_settings/middleware.py
import logging

from . import feature_flags
from .models import DEFAULT_FEATURES

logger = logging.getLogger(__name__)


class FeatureFlagMiddleware:
    """Attach the current feature flags to every request as `request.features`."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        try:
            request.features = feature_flags.get_flags()['features']
        except Exception:
            logger.exception("Error loading feature flags")
            # Don't block the request
            request.features = dict(DEFAULT_FEATURES)
        return self.get_response(request)
