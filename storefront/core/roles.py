"""
Role lookup shared by the auth endpoints, the admin permission classes and
the admin navigation.

Role checks here only decide what the API exposes to a caller; they are the
single place where a user's role is derived.
"""
from .models import UserRole

ROLE_ADMIN = UserRole.ROLE_ADMIN
ROLE_STAFF = UserRole.ROLE_STAFF
ROLE_CUSTOMER = UserRole.ROLE_CUSTOMER

# Highest privilege first
ROLE_PRIORITY = [ROLE_ADMIN, ROLE_STAFF, ROLE_CUSTOMER]

ADMIN_AREA_ROLES = {ROLE_ADMIN, ROLE_STAFF}

STAFF_NAV_ITEMS = [
    {'title': 'Dashboard', 'url': '/admin'},
    {'title': 'Products', 'url': '/admin/products'},
    {'title': 'Categories', 'url': '/admin/categories'},
    {'title': 'Courses', 'url': '/admin/courses'},
    {'title': 'Orders', 'url': '/admin/orders'},
]

ADMIN_ONLY_NAV_ITEMS = [
    {'title': 'Staff', 'url': '/admin/staff'},
    {'title': 'Settings', 'url': '/admin/settings'},
]


def get_user_role(user):
    """Return 'admin', 'staff' or 'customer' for the given user.

    Anonymous users are customers. A superuser without any role row is
    treated as admin so a freshly created superuser can bootstrap the store.
    """
    if user is None or not getattr(user, 'is_authenticated', False):
        return ROLE_CUSTOMER

    assigned = set(UserRole.objects.filter(user=user).values_list('role', flat=True))
    for role in ROLE_PRIORITY:
        if role in assigned:
            return role

    if user.is_superuser:
        return ROLE_ADMIN
    return ROLE_CUSTOMER


def can_access_admin(role):
    return role in ADMIN_AREA_ROLES


def get_admin_nav(role):
    """Admin sidebar entries visible to a role"""
    if role == ROLE_ADMIN:
        return STAFF_NAV_ITEMS + ADMIN_ONLY_NAV_ITEMS
    if role == ROLE_STAFF:
        return list(STAFF_NAV_ITEMS)
    return []


def assign_role(user, role):
    """Give a user a role, returning (user_role, created)"""
    return UserRole.objects.get_or_create(user=user, role=role)
