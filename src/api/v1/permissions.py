"""Role based DRF permissions."""
from rest_framework.permissions import BasePermission


class IsAdmin(BasePermission):
    """Allow access to users with the ADMIN role."""

    message = "Admin role required"

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_superuser or user.is_admin


class IsAdminOrManager(BasePermission):
    """Allow access to users with the ADMIN or MANAGER role."""

    message = "Admin or manager role required"

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        return user.is_superuser or user.can_edit_data
