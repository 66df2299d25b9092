"""Logged-in identity persisted in the local store, and role visibility."""

import json
import logging

from smartschool.database.models import AuthUser
from smartschool.storage.local_store import LocalStore
from smartschool.utils.constants import AUTH_USER_KEY, MODULES, ROLE_MODULES

logger = logging.getLogger(__name__)


def load_auth_user(local: LocalStore) -> AuthUser | None:
    """Read the identity blob written at login, if any."""
    raw = local.get(AUTH_USER_KEY)
    if not raw:
        return None
    try:
        data = json.loads(raw)
    except ValueError:
        logger.warning("Ignoring unparsable %s", AUTH_USER_KEY)
        return None
    if not isinstance(data, dict):
        return None
    return AuthUser.from_dict(data)


def save_auth_user(local: LocalStore, user: AuthUser):
    local.set(AUTH_USER_KEY, json.dumps(user.to_dict()))


def logout(local: LocalStore):
    local.remove(AUTH_USER_KEY)


def visible_modules(user: AuthUser | None) -> list[tuple[str, str]]:
    """(module id, label) pairs the user's role may open."""
    if user is None or user.role not in ROLE_MODULES:
        return []
    allowed = ROLE_MODULES[user.role]
    if allowed is None:
        return list(MODULES)
    return [m for m in MODULES if m[0] in allowed]
