from rest_framework.permissions import BasePermission


class IsAdminRole(BasePermission):
    """Allow access only to marketplace admins. Superusers automatically pass."""

    def has_permission(self, request, view):
        user = request.user
        if not user or not user.is_authenticated:
            return False
        return bool(getattr(user, "is_admin", False))
