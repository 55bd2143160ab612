"""Role hierarchy and the creation/visibility policies built on it.

Rules:
    - superadmin creates and sees every user.
    - administrator / admin create and see everyone except superadmin.
    - manager sees only manager, partner and client.
    - partner and client see only their own role.

Creation and visibility are deliberately separate policies: creation is a
pure level comparison, visibility is special-cased per role.

Role strings are parsed once by ``parse_role``. Anything that does not parse
is treated as "no role": level 0, nothing creatable, nothing viewable. None
of the functions here raise on bad input.
"""

import enum
from collections.abc import Mapping
from typing import Any, Iterable, List, Optional, Union


class Role(str, enum.Enum):
    SUPERADMIN = "superadmin"
    ADMINISTRATOR = "administrator"
    ADMIN = "admin"
    MANAGER = "manager"
    PARTNER = "partner"
    CLIENT = "client"


# Higher level means more power. admin and administrator share a level.
ROLE_HIERARCHY: dict[Role, int] = {
    Role.SUPERADMIN: 5,
    Role.ADMINISTRATOR: 4,
    Role.ADMIN: 4,
    Role.MANAGER: 3,
    Role.PARTNER: 2,
    Role.CLIENT: 1,
}

ADMIN_ROLES = frozenset({Role.ADMINISTRATOR, Role.ADMIN})

RoleLike = Union[Role, str, None]


def parse_role(value: Any) -> Optional[Role]:
    """Parse a raw role value into a ``Role``; ``None`` when unknown."""
    if isinstance(value, Role):
        return value
    if not isinstance(value, str):
        return None
    try:
        return Role(value.strip().lower())
    except ValueError:
        return None


def _level(role: Optional[Role]) -> int:
    return ROLE_HIERARCHY[role] if role is not None else 0


class CreationPolicy:
    """Who may create (or assign) which role: level(creator) >= level(target)."""

    @staticmethod
    def allows(creator: Optional[Role], target: Optional[Role]) -> bool:
        if creator is None or target is None:
            return False
        return _level(creator) >= _level(target)

    @staticmethod
    def creatable(creator: Optional[Role]) -> List[Role]:
        level = _level(creator)
        allowed = [role for role, role_level in ROLE_HIERARCHY.items() if role_level <= level]
        # sorted() is stable, so equal levels keep table order
        return sorted(allowed, key=_level, reverse=True)


class VisibilityPolicy:
    """Who may see users of which role. Special-cased per viewer role."""

    @staticmethod
    def viewable(viewer: Optional[Role]) -> List[Role]:
        if viewer is None:
            return []
        if viewer is Role.SUPERADMIN:
            return list(ROLE_HIERARCHY)
        if viewer in ADMIN_ROLES:
            return [role for role in ROLE_HIERARCHY if role is not Role.SUPERADMIN]
        if viewer is Role.MANAGER:
            ceiling = ROLE_HIERARCHY[Role.ADMINISTRATOR]
            return [role for role, level in ROLE_HIERARCHY.items() if level < ceiling]
        return [viewer]

    @classmethod
    def allows(cls, viewer: Optional[Role], target: Optional[Role]) -> bool:
        if target is None:
            return False
        return target in cls.viewable(viewer)


def get_role_level(role: RoleLike) -> int:
    """Return the hierarchy level of ``role`` (case-insensitive), 0 if unknown."""
    return _level(parse_role(role))


def can_create_role(creator_role: RoleLike, target_role: RoleLike) -> bool:
    """True when the creator's level is at least the target's level."""
    return CreationPolicy.allows(parse_role(creator_role), parse_role(target_role))


def can_view_role(viewer_role: RoleLike, target_role: RoleLike) -> bool:
    """True when users holding ``target_role`` are visible to ``viewer_role``."""
    return VisibilityPolicy.allows(parse_role(viewer_role), parse_role(target_role))


def get_creatable_roles(role: RoleLike) -> List[str]:
    """Role names at or below ``role``'s level, highest level first."""
    return [r.value for r in CreationPolicy.creatable(parse_role(role))]


def get_viewable_roles(role: RoleLike) -> List[str]:
    """Role names whose users ``role`` may see."""
    return [r.value for r in VisibilityPolicy.viewable(parse_role(role))]


def _role_of(user: Any) -> Any:
    if isinstance(user, Mapping):
        return user.get("role")
    return getattr(user, "role", None)


def filter_users_by_permission(users: Iterable[Any], viewer_role: RoleLike) -> list:
    """Keep only the users (mappings or objects with ``role``) the viewer may see."""
    viewable = set(VisibilityPolicy.viewable(parse_role(viewer_role)))
    return [user for user in users if parse_role(_role_of(user)) in viewable]
