"""Helpers shared by the route modules: error mapping, commits and announcements."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import notify, pubsub, services
from ..logging_config import get_logger
from ..workflows import WorkflowError

logger = get_logger(__name__)

CONFLICT_DETAIL = "Record conflicts with an existing entry"


@contextmanager
def service_errors(db: Session):
    """Translate service and workflow errors into HTTP responses, discarding the unit of work."""
    try:
        yield
    except services.NotFound as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except services.Conflict as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except (services.InvalidRequest, WorkflowError) as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except IntegrityError as exc:
        db.rollback()
        logger.info("integrity_conflict", error=str(exc.orig))
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_DETAIL) from exc


def commit(db: Session, *instances: Any) -> None:
    """Commit the request's unit of work, mapping uniqueness violations to 409."""
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.info("integrity_conflict", error=str(exc.orig))
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CONFLICT_DETAIL) from exc
    for instance in instances:
        db.refresh(instance)


def get_or_404(db: Session, model, entity_id, label: str):
    entity = db.get(model, entity_id)
    if entity is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"{label} not found")
    return entity


async def announce_status_change(
    kind: str,
    *,
    application_id,
    number: str,
    title: str,
    change: services.StatusChange,
    recipients: list[str | None] | None = None,
) -> None:
    """Email the people on the application and publish the change for dashboards."""
    addresses = notify.workflow_recipients(*(recipients or []))
    if addresses:
        notify.send_status_change_email(
            addresses,
            kind=kind,
            number=number,
            title=title,
            status_from=change.label_from,
            status_to=change.label_to,
        )
    await pubsub.publish_workflow_event(
        kind,
        {
            "kind": kind,
            "application_id": application_id,
            "number": number,
            "status_from": change.status_from,
            "status_to": change.status_to,
        },
    )
