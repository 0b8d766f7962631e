from rest_framework.permissions import BasePermission


class IsStudioOwnerOrAdmin(BasePermission):
    """
    Allow access only to the owner of the requested studio.
    Platform admins automatically pass.
    """

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        if request.user.is_platform_admin:
            return True

        studio = getattr(view, "studio", None)
        if studio is None:
            return False
        return studio.owner_id == request.user.id
