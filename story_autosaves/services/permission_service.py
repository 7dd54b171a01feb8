"""Permission checking: the one place where story permission rules live.

Design:
    - Roles: admin = editor > author > contributor > viewer
    - Actions: read, edit, edit_others, publish
    - Editing a story someone else owns needs ``edit_others``
    - An unknown or empty role has no actions
"""

from __future__ import annotations

from typing import Optional

from ..core.auth import AuthContext
from ..exceptions import AuthenticationError, ForbiddenError

# Role → allowed actions.
_ROLE_ACTIONS: dict[str, frozenset[str]] = {
    "admin": frozenset({"read", "edit", "edit_others", "publish"}),
    "editor": frozenset({"read", "edit", "edit_others", "publish"}),
    "author": frozenset({"read", "edit", "publish"}),
    "contributor": frozenset({"read", "edit"}),
    "viewer": frozenset({"read"}),
}


def check_permission(auth: AuthContext, action: str, owner_id: Optional[str] = None) -> bool:
    """Check whether *auth* may perform *action*, optionally on a story owned by *owner_id*.

    Returns:
        True if permitted, False otherwise.
    """
    actions = _ROLE_ACTIONS.get(auth.role, frozenset())
    if action == "edit" and owner_id is not None and owner_id != auth.user_id:
        return "edit_others" in actions
    return action in actions


def require_permission(auth: AuthContext, action: str, owner_id: Optional[str] = None, message: str = "") -> None:
    """Raise unless ``check_permission`` allows the action.

    Raises:
        AuthenticationError: The caller is anonymous (401).
        ForbiddenError: The caller is known but lacks the permission (403).
    """
    if check_permission(auth, action, owner_id):
        return
    if not auth.is_authenticated:
        raise AuthenticationError("Authentication required")
    raise ForbiddenError(message or f"Sorry, you are not allowed to {action.replace('_', ' ')} this story.")
