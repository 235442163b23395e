from enum import Enum


class Role(str, Enum):
    """Staff of a kiosk. Owners manage staff; owners and admins manage prices."""
    owner = "owner"
    admin = "admin"
    cashier = "cashier"


ADMIN_ROLES = {Role.owner, Role.admin}


def is_valid_role(role: str) -> bool:
    return role in {r.value for r in Role}


def can_manage_prices(role: str) -> bool:
    return role in {r.value for r in ADMIN_ROLES}
