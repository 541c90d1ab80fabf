# accounts/permissions.py
from django.utils.translation import gettext_lazy as _
from rest_framework.permissions import BasePermission


class IsPlatformAdmin(BasePermission):
    message = _("Admin access required.")

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_platform_admin)
