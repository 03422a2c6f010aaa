"""
Access control for API views.

The profile is resolved once per request and cached on it; views declare
the capability they need and HasCapability is the only place that checks it.
"""
from rest_framework import permissions

from .models import Profile

_PROFILE_ATTR = '_pos_profile'


def get_request_profile(request):
    """Return the Profile of the authenticated user, or None."""
    if not hasattr(request, _PROFILE_ATTR):
        user = request.user
        profile = None
        if user.is_authenticated:
            profile = Profile.objects.filter(user=user).first()
        setattr(request, _PROFILE_ATTR, profile)
    return getattr(request, _PROFILE_ATTR)


class HasCapability(permissions.BasePermission):
    """
    Grants access when the user's role holds the view's required_capability.

    Views may declare a per-method mapping in required_capabilities, e.g.
    {'GET': Capability.VIEW_INVENTORY, 'POST': Capability.MANAGE_INVENTORY}.
    """
    message = "Permission denied. Please check if you are logged in as an admin user."

    def has_permission(self, request, view):
        capability = self._required(request, view)
        profile = get_request_profile(request)
        if profile is None:
            return False
        if capability is None:
            return True
        return profile.has_capability(capability)

    @staticmethod
    def _required(request, view):
        per_method = getattr(view, 'required_capabilities', None)
        if per_method:
            return per_method.get(request.method, per_method.get('*'))
        return getattr(view, 'required_capability', None)
