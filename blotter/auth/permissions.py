"""Admin checks and the protected-account rule.

A protected account (``settings.PROTECTED_USERNAMES``) and the acting admin's
own account can never be the target of delete, admin toggle, rank change,
block or terminate.
"""

from __future__ import annotations

from typing import Iterable, Optional

from blotter import settings
from blotter.auth.models import User
from blotter.errors import ProtectedUserError


def is_protected_username(username: str, protected: Optional[Iterable[str]] = None) -> bool:
    names = settings.PROTECTED_USERNAMES if protected is None else protected
    return username.strip().lower() in {n.lower() for n in names}


def ensure_not_protected(
    actor: Optional[User],
    target_username: str,
    action: str,
    protected: Optional[Iterable[str]] = None,
) -> None:
    """Raise :class:`ProtectedUserError` if ``actor`` may not ``action`` the target.

    Usage in a service::

        ensure_not_protected(admin, target.username, "delete")
        users.delete(target.id)
    """
    if is_protected_username(target_username, protected):
        raise ProtectedUserError(f"Cannot {action} protected account '{target_username}'")
    if actor is not None and target_username.strip().lower() == actor.username.lower():
        raise ProtectedUserError(f"Cannot {action} your own account")


def is_admin(user: Optional[User]) -> bool:
    return bool(user is not None and user.is_admin)
