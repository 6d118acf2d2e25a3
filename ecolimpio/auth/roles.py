"""Role to URL namespace mapping"""

from ..models.user import Role

ADMIN_HOME = "/admin/dashboard"
CUSTOMER_HOME = "/dashboard"

STAFF_ROLES = frozenset({Role.ADMIN, Role.STAFF})
ADMIN_ROLES = frozenset({Role.ADMIN})


def in_namespace(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def home_path(role: Role) -> str:
    if role is Role.ADMIN or role is Role.STAFF:
        return ADMIN_HOME
    if role is Role.CUSTOMER:
        return CUSTOMER_HOME
    raise ValueError(f"Unhandled role: {role!r}")


def may_access(role: Role, path: str) -> bool:
    """Whether a role may open an internal page path (already stripped of its hash)"""
    if in_namespace(path, "/admin"):
        return role in STAFF_ROLES
    if in_namespace(path, "/dashboard"):
        return role is Role.CUSTOMER
    return False
