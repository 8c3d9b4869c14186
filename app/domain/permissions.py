"""
Feeder Role Permissions
=======================

Static role templates for shared feeders. Grants stored per membership can
override a template, but these tables are what a new member starts with and
what invitation rules are checked against.
"""

from __future__ import annotations

from app.domain.exceptions import PermissionDeniedError
from app.enums.feeding import FeederRole, PermissionType

_VIEWER = (
    PermissionType.VIEW_SENSOR_DATA,
    PermissionType.VIEW_FEEDING_SCHEDULES,
    PermissionType.VIEW_CAMERA_FEEDS,
)

_SCHEDULER = (
    PermissionType.VIEW_SENSOR_DATA,
    PermissionType.VIEW_FEEDING_SCHEDULES,
    PermissionType.CREATE_FEEDING_SCHEDULES,
    PermissionType.EDIT_FEEDING_SCHEDULES,
    PermissionType.DELETE_FEEDING_SCHEDULES,
    PermissionType.MANUAL_FEED_RELEASE,
    PermissionType.VIEW_CAMERA_FEEDS,
)

ROLE_PERMISSIONS: dict[FeederRole, tuple[PermissionType, ...]] = {
    FeederRole.VIEWER: _VIEWER,
    FeederRole.SCHEDULER: _SCHEDULER,
    FeederRole.MANAGER: _SCHEDULER + (PermissionType.EDIT_FEEDER_SETTINGS,),
    FeederRole.OWNER: tuple(PermissionType),
}

ROLE_HIERARCHY: dict[FeederRole, int] = {
    FeederRole.VIEWER: 1,
    FeederRole.SCHEDULER: 2,
    FeederRole.MANAGER: 3,
    FeederRole.OWNER: 4,
}

# Managers cannot invite other managers; nobody can invite an owner.
INVITABLE_ROLES: dict[FeederRole, tuple[FeederRole, ...]] = {
    FeederRole.OWNER: (FeederRole.VIEWER, FeederRole.SCHEDULER, FeederRole.MANAGER),
    FeederRole.MANAGER: (FeederRole.VIEWER, FeederRole.SCHEDULER),
}


def _as_role(role: FeederRole | str | None) -> FeederRole | None:
    if isinstance(role, FeederRole):
        return role
    try:
        return FeederRole(str(role).lower())
    except ValueError:
        return None


def _as_permission(permission: PermissionType | str) -> PermissionType | None:
    if isinstance(permission, PermissionType):
        return permission
    try:
        return PermissionType(str(permission).lower())
    except ValueError:
        return None


def is_valid_role(role: str) -> bool:
    return _as_role(role) is not None


def is_valid_permission(permission: str) -> bool:
    return _as_permission(permission) is not None


def get_role_permissions(role: FeederRole | str) -> list[PermissionType]:
    """Permissions granted by a role template (empty for unknown roles)."""
    resolved = _as_role(role)
    if resolved is None:
        return []
    return list(ROLE_PERMISSIONS[resolved])


def role_has_permission(role: FeederRole | str | None, permission: PermissionType | str) -> bool:
    resolved = _as_role(role)
    wanted = _as_permission(permission)
    if resolved is None or wanted is None:
        return False
    return wanted in ROLE_PERMISSIONS[resolved]


def get_role_hierarchy_level(role: FeederRole | str | None) -> int:
    """Hierarchy level of a role (higher number = more permissions, 0 if unknown)."""
    resolved = _as_role(role)
    return ROLE_HIERARCHY.get(resolved, 0) if resolved else 0


def can_manage_role(manager_role: FeederRole | str, target_role: FeederRole | str) -> bool:
    """A role can manage only roles strictly below it."""
    return get_role_hierarchy_level(manager_role) > get_role_hierarchy_level(target_role)


def get_invitable_roles(inviter_role: FeederRole | str) -> list[FeederRole]:
    resolved = _as_role(inviter_role)
    return list(INVITABLE_ROLES.get(resolved, ())) if resolved else []


def can_invite_to_role(inviter_role: FeederRole | str, target_role: FeederRole | str) -> bool:
    target = _as_role(target_role)
    return target is not None and target in get_invitable_roles(inviter_role)


def require_permission(
    role: FeederRole | str | None,
    permission: PermissionType | str,
    *,
    feeder_id: str | None = None,
) -> None:
    """Raise PermissionDeniedError unless the role template grants the permission."""
    if not role_has_permission(role, permission):
        raise PermissionDeniedError(
            f"Insufficient permissions: {permission} required",
            detail={"feeder_id": feeder_id, "role": str(role) if role else None, "permission": str(permission)},
        )
