"""
Request identity dependencies.

Authentication happens upstream (API gateway); it forwards the caller as
``X-User-Id`` and ``X-User-Role`` headers.
"""

import logging
from dataclasses import dataclass

from fastapi import Depends, Header

from storefront.core.domain import AuthorizationException

logger = logging.getLogger(__name__)

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class CurrentUser:
    user_id: str | None = None
    role: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id)

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_role: str | None = Header(default=None),
) -> CurrentUser:
    """Caller identity; anonymous when no header is sent."""
    return CurrentUser(user_id=x_user_id or None, role=(x_user_role or "").lower() or None)


def require_user(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:  # noqa: B008
    if not user.is_authenticated:
        raise AuthorizationException("access", "account")
    return user


def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:  # noqa: B008
    if not user.is_admin:
        logger.warning(f"Admin operation denied for user {user.user_id!r}")
        raise AuthorizationException("administer", "storefront", user.user_id)
    return user


__all__ = ["CurrentUser", "get_current_user", "require_user", "require_admin"]
