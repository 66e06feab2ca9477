"""
Role and permission-string checks.

Users carry a list of permission ids. A permission id is either a catalog
entry (``orders-full``, ``production-view``), a specific ``module:action``
pair (``orders:approve``) or the wildcard ``all``. Admins bypass every check.
"""
from rest_framework.permissions import BasePermission


PERMISSION_CATALOG = [
    {'id': 'dashboard-view', 'name': 'Visualizar Dashboard', 'module': 'dashboard', 'actions': ['view']},
    {'id': 'orders-full', 'name': 'Gerenciar Pedidos', 'module': 'orders', 'actions': ['view', 'create', 'edit', 'delete']},
    {'id': 'customers-full', 'name': 'Gerenciar Clientes', 'module': 'customers', 'actions': ['view', 'create', 'edit', 'delete']},
    {'id': 'production-view', 'name': 'Visualizar Produção', 'module': 'production', 'actions': ['view']},
    {'id': 'production-manage', 'name': 'Gerenciar Produção', 'module': 'production', 'actions': ['view', 'edit']},
    {'id': 'products-view', 'name': 'Visualizar Produtos', 'module': 'products', 'actions': ['view']},
    {'id': 'products-manage', 'name': 'Gerenciar Produtos', 'module': 'products', 'actions': ['view', 'create', 'edit', 'delete']},
    {'id': 'settings-view', 'name': 'Visualizar Configurações', 'module': 'settings', 'actions': ['view']},
    {'id': 'settings-manage', 'name': 'Gerenciar Configurações', 'module': 'settings', 'actions': ['view', 'edit']},
]

ROLE_DEFAULT_PERMISSIONS = {
    'admin': [p['id'] for p in PERMISSION_CATALOG],
    'seller': ['orders-full', 'customers-full'],
    'operator': ['production-view', 'production-manage'],
}

# Legacy and coarser ids that also grant a module:action check
PERMISSION_ALIASES = {
    'orders:view': ['orders-full', 'orders:read', 'orders:view'],
    'orders:create': ['orders-full', 'orders:create'],
    'orders:edit': ['orders-full', 'orders:edit'],
    'orders:delete': ['orders-full', 'orders:delete'],
    'orders:approve': ['orders-full', 'orders:approve', 'orders:edit'],
    'orders:cancel': ['orders-full', 'orders:cancel', 'orders:delete'],
    'orders:advance': ['orders-full', 'orders:advance', 'orders:edit'],
    'orders:deliver': ['orders-full', 'orders:deliver', 'orders:edit'],
    'customers:view': ['customers-full', 'customers:read', 'customers:view'],
    'customers:create': ['customers-full', 'customers:create'],
    'customers:edit': ['customers-full', 'customers:edit'],
    'customers:delete': ['customers-full', 'customers:delete'],
    'dashboard:view': ['dashboard:view', 'dashboard-view', 'all'],
    'production:view': ['production:view', 'production-view', 'production-manage', 'all'],
    'production:edit': ['production:edit', 'production-manage'],
    'products:view': ['products:view', 'products-view', 'products-manage', 'all'],
    'products:create': ['products:create', 'products-manage'],
    'products:edit': ['products:edit', 'products-manage'],
    'products:delete': ['products:delete', 'products-manage'],
    'settings:view': ['settings:view', 'settings-view', 'settings-manage', 'all'],
    'settings:edit': ['settings:edit', 'settings-manage'],
}


def default_permissions_for_role(role):
    """Return a fresh copy of the default permission ids for a role"""
    return list(ROLE_DEFAULT_PERMISSIONS.get(role, []))


def check_permission(user, module, action):
    """Check whether a user may perform ``action`` on ``module``"""
    if not user or not getattr(user, 'is_authenticated', False):
        return False
    if user.is_superuser or getattr(user, 'role', None) == 'admin':
        return True

    granted = set(getattr(user, 'permissions', None) or [])
    key = f'{module}:{action}'
    if key in granted or f'{module}-full' in granted or 'all' in granted:
        return True

    return any(p in granted for p in PERMISSION_ALIASES.get(key, []))


def module_access(user):
    """Flags the UI uses to decide which sections to show"""
    return {
        'is_admin': bool(user.is_superuser or user.role == 'admin'),
        'can_access_dashboard': check_permission(user, 'dashboard', 'view'),
        'can_access_orders': check_permission(user, 'orders', 'view'),
        'can_access_customers': check_permission(user, 'customers', 'view'),
        'can_access_production': check_permission(user, 'production', 'view'),
        'can_access_products': check_permission(user, 'products', 'view'),
        'can_access_settings': check_permission(user, 'settings', 'view'),
    }


def HasModulePermission(module, action):
    """Build a DRF permission class bound to a module/action pair"""

    class _ModulePermission(BasePermission):
        message = f'Permission denied: {module}:{action}'

        def has_permission(self, request, view):
            return check_permission(request.user, module, action)

    _ModulePermission.__name__ = f'Has{module.title()}{action.title()}Permission'
    return _ModulePermission


class IsAdminRole(BasePermission):
    """Allow only admin-role users and superusers"""
    message = 'Administrator access required'

    def has_permission(self, request, view):
        user = request.user
        return bool(user and user.is_authenticated and (user.is_superuser or user.role == 'admin'))


def require_permission(request, module, action):
    """Return a 403 Response when the check fails, otherwise None"""
    from rest_framework import status
    from rest_framework.response import Response

    if check_permission(request.user, module, action):
        return None
    return Response({'error': f'Permission denied: {module}:{action}'}, status=status.HTTP_403_FORBIDDEN)
