"""Append-only audit trail helpers for committee comments and manuscript history."""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from . import models

# purpose: persist comment and history rows with per-parent sequential ordering
# inputs: SQLAlchemy session, parent entity, entry metadata
# outputs: flushed IbcApplicationComment, IrbApplicationComment and ManuscriptHistory rows
# status: active


def _next_sequence(db: Session, model, parent_column, parent_id: UUID) -> int:
    latest = (
        db.query(model)
        .filter(parent_column == parent_id)
        .order_by(model.sequence.desc())
        .first()
    )
    return 1 if latest is None else latest.sequence + 1


def _stringify(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def record_ibc_comment(
    db: Session,
    application: models.IbcApplication,
    comment_type: str,
    comment: str,
    *,
    author_type: str = "system",
    author_name: str | None = None,
    author_id: UUID | None = None,
    recommendation: str | None = None,
    status_from: str | None = None,
    status_to: str | None = None,
    is_internal: bool = False,
) -> models.IbcApplicationComment:
    """Append a comment to the IBC application's trail."""

    entry = models.IbcApplicationComment(
        application_id=application.id,
        sequence=_next_sequence(
            db,
            models.IbcApplicationComment,
            models.IbcApplicationComment.application_id,
            application.id,
        ),
        comment_type=comment_type,
        author_type=author_type,
        author_name=author_name,
        author_id=author_id,
        comment=comment,
        recommendation=recommendation,
        status_from=status_from,
        status_to=status_to,
        is_internal=is_internal,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    db.flush()
    return entry


def record_irb_comment(
    db: Session,
    application: models.IrbApplication,
    comment_type: str,
    comment: str,
    *,
    author_type: str = "system",
    author_name: str | None = None,
    author_id: UUID | None = None,
    recommendation: str | None = None,
    status_from: str | None = None,
    status_to: str | None = None,
    is_internal: bool = False,
) -> models.IrbApplicationComment:
    """Append a comment to the IRB application's trail, noting the status at the time."""

    entry = models.IrbApplicationComment(
        application_id=application.id,
        sequence=_next_sequence(
            db,
            models.IrbApplicationComment,
            models.IrbApplicationComment.application_id,
            application.id,
        ),
        comment_type=comment_type,
        author_type=author_type,
        author_name=author_name,
        author_id=author_id,
        comment=comment,
        recommendation=recommendation,
        workflow_status=application.workflow_status,
        status_from=status_from,
        status_to=status_to,
        is_internal=is_internal,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    db.flush()
    return entry


def record_manuscript_history(
    db: Session,
    publication: models.Publication,
    *,
    change_reason: str,
    from_status: str | None = None,
    to_status: str | None = None,
    changed_field: str | None = None,
    old_value: Any = None,
    new_value: Any = None,
    changed_by: UUID | None = None,
) -> models.ManuscriptHistory:
    """Append one manuscript history row; rows are never updated afterwards."""

    entry = models.ManuscriptHistory(
        publication_id=publication.id,
        sequence=_next_sequence(
            db,
            models.ManuscriptHistory,
            models.ManuscriptHistory.publication_id,
            publication.id,
        ),
        from_status=from_status,
        to_status=to_status,
        changed_field=changed_field,
        old_value=_stringify(old_value),
        new_value=_stringify(new_value),
        changed_by=changed_by,
        change_reason=change_reason,
        created_at=datetime.now(timezone.utc),
    )
    db.add(entry)
    db.flush()
    return entry
