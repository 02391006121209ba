from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import BasePermission

from .roles import get_user_role, can_access_admin, ROLE_ADMIN

ACCESS_DENIED_MESSAGE = 'Access denied. Admin privileges required.'


class RoleGatePermission(BasePermission):
    """
    Deny with a 403 and a redirect home.

    Anonymous callers resolve to the customer role, so they get the same
    denial as a signed-in customer rather than a login challenge.
    """
    message = {'detail': ACCESS_DENIED_MESSAGE, 'redirect': '/'}

    def allows(self, role):
        raise NotImplementedError

    def has_permission(self, request, view):
        role = get_user_role(request.user)
        request.store_role = role
        if not self.allows(role):
            raise PermissionDenied(self.message)
        return True


class IsStoreStaff(RoleGatePermission):
    """Admin or staff - dashboard, catalog and order management"""

    def allows(self, role):
        return can_access_admin(role)


class IsStoreAdmin(RoleGatePermission):
    """Admin only - settings and staff management"""

    def allows(self, role):
        return role == ROLE_ADMIN
