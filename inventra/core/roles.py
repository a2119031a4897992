"""
User roles and the per-role view configuration served to the dashboard.

``role_view_config`` is the single place that decides what a role can see
and do; permission classes and ``/auth/me/`` both read from it.
"""
from django.db import models


class Role(models.TextChoices):
    ADMIN = 'admin', 'Admin'
    MANAGER = 'manager', 'Manager'
    STAFF = 'staff', 'Staff'


_CAPABILITIES = {
    Role.ADMIN: {
        'can_manage_products': True,
        'can_manage_suppliers': True,
        'can_delete_suppliers': True,
        'can_update_order_status': True,
        'can_delete_orders': True,
        'can_assign_roles': True,
        'can_view_reports': True,
    },
    Role.MANAGER: {
        'can_manage_products': True,
        'can_manage_suppliers': True,
        'can_delete_suppliers': False,
        'can_update_order_status': True,
        'can_delete_orders': True,
        'can_assign_roles': False,
        'can_view_reports': True,
    },
    Role.STAFF: {
        'can_manage_products': False,
        'can_manage_suppliers': False,
        'can_delete_suppliers': False,
        'can_update_order_status': False,
        'can_delete_orders': False,
        'can_assign_roles': False,
        'can_view_reports': True,
    },
}

_DASHBOARDS = {
    Role.ADMIN: {
        'title': 'Executive Dashboard',
        'theme': 'indigo',
        'widgets': ['overview', 'smart_insights', 'ai_assistant', 'reports', 'low_stock'],
    },
    Role.MANAGER: {
        'title': 'Management Center',
        'theme': 'blue',
        'widgets': ['manager_insights', 'overview', 'smart_insights', 'reports', 'low_stock'],
    },
    Role.STAFF: {
        'title': 'Operations Hub',
        'theme': 'orange',
        'widgets': ['staff_tasks', 'low_stock', 'ai_assistant'],
    },
}


def role_view_config(role):
    """
    Return the dashboard and capability configuration for a role.

    Raises ValueError for anything that is not a member of ``Role``.
    """
    role = Role(role)
    config = {'role': role.value}
    config.update(_DASHBOARDS[role])
    config['widgets'] = list(config['widgets'])
    config.update(_CAPABILITIES[role])
    return config


def has_capability(role, capability):
    """True when ``role`` is a valid role holding ``capability``"""
    try:
        return bool(role_view_config(role).get(capability, False))
    except ValueError:
        return False
