from rest_framework.permissions import SAFE_METHODS
from rest_framework.throttling import UserRateThrottle


class MutationUserThrottle(UserRateThrottle):
    """Per-user limit on writes; reads are never counted."""

    scope = "mutation_user"

    def allow_request(self, request, view):
        if request.method in SAFE_METHODS:
            return True
        return super().allow_request(request, view)
