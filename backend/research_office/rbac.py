from __future__ import annotations

from typing import Iterable

from sqlalchemy.orm import Session

from . import models, schemas

# purpose: resolve navigation access levels configured per job title
# status: active

DEFAULT_ACCESS_LEVEL = "view"


def resolve_access_level(db: Session, job_title: str, navigation_item: str) -> str:
    """Return the configured level for the pair, ``view`` when none is set."""

    permission = (
        db.query(models.RolePermission)
        .filter(
            models.RolePermission.job_title == job_title,
            models.RolePermission.navigation_item == navigation_item,
        )
        .first()
    )
    if permission is None:
        return DEFAULT_ACCESS_LEVEL
    return permission.access_level


def upsert_role_permissions(
    db: Session,
    entries: Iterable[schemas.RolePermissionCreate],
) -> list[models.RolePermission]:
    """Create or update one row per (job title, navigation item)."""

    results: list[models.RolePermission] = []
    for entry in entries:
        permission = (
            db.query(models.RolePermission)
            .filter(
                models.RolePermission.job_title == entry.job_title,
                models.RolePermission.navigation_item == entry.navigation_item,
            )
            .one_or_none()
        )
        if permission is None:
            permission = models.RolePermission(
                job_title=entry.job_title,
                navigation_item=entry.navigation_item,
            )
            db.add(permission)
        permission.access_level = entry.access_level
        db.flush()
        results.append(permission)
    return results
