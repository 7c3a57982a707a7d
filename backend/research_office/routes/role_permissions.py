from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from .. import models, schemas
from ..database import get_db
from ..rbac import resolve_access_level, upsert_role_permissions
from .common import commit

router = APIRouter(prefix="/api/role-permissions", tags=["role-permissions"])


@router.get("", response_model=list[schemas.RolePermissionOut])
def list_role_permissions(job_title: str | None = None, db: Session = Depends(get_db)):
    query = db.query(models.RolePermission)
    if job_title:
        query = query.filter(models.RolePermission.job_title == job_title)
    return query.order_by(models.RolePermission.job_title.asc(), models.RolePermission.navigation_item.asc()).all()


@router.post("", response_model=schemas.RolePermissionOut, status_code=status.HTTP_201_CREATED)
def create_role_permission(payload: schemas.RolePermissionCreate, db: Session = Depends(get_db)):
    permission = models.RolePermission(**payload.model_dump())
    db.add(permission)
    commit(db, permission)
    return permission


@router.put("", response_model=list[schemas.RolePermissionOut])
def bulk_update_role_permissions(payload: list[schemas.RolePermissionCreate], db: Session = Depends(get_db)):
    permissions = upsert_role_permissions(db, payload)
    commit(db, *permissions)
    return permissions


@router.get("/access", response_model=schemas.AccessLevelOut)
def get_access_level(
    job_title: str = Query(...),
    navigation_item: str = Query(...),
    db: Session = Depends(get_db),
):
    return {
        "job_title": job_title,
        "navigation_item": navigation_item,
        "access_level": resolve_access_level(db, job_title, navigation_item),
    }
