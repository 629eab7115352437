# staff/permissions.py
import hmac

from django.conf import settings
from rest_framework.permissions import SAFE_METHODS, BasePermission

from .models import Employee

ADMIN_SECRET_HEADER = "HTTP_X_ADMIN_SECRET"


def has_bootstrap_secret(request) -> bool:
    """
    True when the request carries X-Admin-Secret matching ADMIN_BOOTSTRAP_SECRET.
    An empty configured secret disables the header entirely.
    """
    expected = getattr(settings, "ADMIN_BOOTSTRAP_SECRET", "")
    provided = request.META.get(ADMIN_SECRET_HEADER, "")
    if not expected or not provided:
        return False
    return hmac.compare_digest(expected, provided)


def is_admin_user(user) -> bool:
    if isinstance(user, Employee):
        return user.is_active and user.is_admin
    # Django staff users logged in via /admin (session)
    return bool(user and getattr(user, "is_authenticated", False) and getattr(user, "is_staff", False))


class IsEmployee(BasePermission):
    """Any active employee (or an admin)."""
    def has_permission(self, request, view):
        user = request.user
        if isinstance(user, Employee):
            return user.is_active
        return is_admin_user(user) or has_bootstrap_secret(request)


class IsAdminOrBootstrap(BasePermission):
    """Admin employees, Django staff, or the bootstrap secret header."""
    def has_permission(self, request, view):
        return is_admin_user(request.user) or has_bootstrap_secret(request)


class IsAdminOrReadOnly(BasePermission):
    """
    Read: anyone
    Write: admin only
    """
    def has_permission(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return is_admin_user(request.user) or has_bootstrap_secret(request)
