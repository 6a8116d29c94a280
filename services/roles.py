# services/roles.py
from __future__ import annotations

from typing import Callable

from fastapi import Depends

from deps.auth import get_current_user, CurrentUser
from services.errors import ForbiddenError

ROLE_OPS = "OPS"
ROLE_FINANCE = "FINANCE"
ROLES = (ROLE_OPS, ROLE_FINANCE)


def assert_role(user: CurrentUser, *allowed: str) -> None:
    role = (getattr(user, "role", None) or "").strip().upper()
    if role not in allowed:
        raise ForbiddenError("Insufficient permissions")


def require_roles(*allowed: str) -> Callable[..., CurrentUser]:
    """
    Route dependency: authenticated user whose role is one of `allowed`.
    Missing/invalid credentials -> 401 (from get_current_user), wrong role -> 403.
    """

    def _dep(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        assert_role(user, *allowed)
        return user

    return _dep


require_ops = require_roles(ROLE_OPS)
require_finance = require_roles(ROLE_FINANCE)
require_staff = require_roles(ROLE_OPS, ROLE_FINANCE)
