from rest_framework.permissions import BasePermission

from .roles import has_capability


def capability_required(capability, methods=None):
    """
    Build a permission class granting access to users whose role holds
    ``capability``. With ``methods`` given, other HTTP methods pass through.
    """

    class HasCapability(BasePermission):
        message = 'Your role is not allowed to perform this action.'

        def has_permission(self, request, view):
            if methods and request.method not in methods:
                return True
            user = request.user
            if not user or not user.is_authenticated:
                return False
            return has_capability(getattr(user, 'role', None), capability)

    HasCapability.__name__ = f'HasCapability_{capability}'
    return HasCapability
