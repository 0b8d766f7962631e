from rest_framework.permissions import BasePermission


class IsStudioOwner(BasePermission):
    message = "Only studio owners can perform this action."

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_studio_owner)


class IsPlatformAdmin(BasePermission):
    """Superusers and users holding the ADMIN role."""

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and user.is_platform_admin)
