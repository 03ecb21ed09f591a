from rest_framework.permissions import BasePermission


class ProviderSignedPermission(BasePermission):
    """
    Autorise l'accès si ProviderSignatureAuthentication a placé un principal provider.
    """
    def has_permission(self, request, view):
        return bool(getattr(request.user, "is_authenticated", False) and hasattr(request.user, "verified"))
