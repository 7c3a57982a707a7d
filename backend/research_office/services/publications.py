"""Publication orchestration: manuscript status workflow, edits, authorship and imports."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.orm import Session

from .. import models, schemas
from ..audit import record_manuscript_history
from ..logging_config import get_logger
from ..workflows import publication as workflow
from . import Conflict, InvalidRequest, NotFound, StatusChange, require

# purpose: move manuscripts through the publication pipeline with gated transitions
# inputs: SQLAlchemy session, validated publication payloads, external metadata dicts
# outputs: flushed Publication rows with append-only ManuscriptHistory entries
# status: active
# depends_on: research_office.workflows.publication, research_office.audit

logger = get_logger(__name__)

_GATED_FIELDS = (
    "authors",
    "journal",
    "doi",
    "publication_date",
    "prepublication_url",
    "prepublication_site",
    workflow.IP_OFFICE_FLAG,
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_publication(db: Session, publication_id: UUID) -> models.Publication:
    return require(db, models.Publication, publication_id, "Publication")


def list_publications(
    db: Session,
    *,
    research_activity_id: UUID | None = None,
    status: str | None = None,
) -> Sequence[models.Publication]:
    query = db.query(models.Publication)
    if research_activity_id is not None:
        query = query.filter(models.Publication.research_activity_id == research_activity_id)
    if status:
        query = query.filter(models.Publication.status == status)
    return query.order_by(models.Publication.created_at.desc()).all()


def create_publication(db: Session, payload: schemas.PublicationCreate) -> models.Publication:
    if payload.status not in workflow.STATUSES:
        raise InvalidRequest(f"Unknown publication status '{payload.status}'")
    if payload.research_activity_id is not None:
        require(db, models.ResearchActivity, payload.research_activity_id, "Research activity")
    publication = models.Publication(**payload.model_dump())
    db.add(publication)
    db.flush()
    db.refresh(publication)
    return publication


def update_publication(
    db: Session,
    publication: models.Publication,
    payload: schemas.PublicationUpdate,
) -> models.Publication:
    """Plain field edits, one history row per changed field."""

    if payload.changed_by is not None:
        require(db, models.Scientist, payload.changed_by, "Scientist")
    data = payload.model_dump(exclude_unset=True, exclude={"changed_by"})
    if data.get("research_activity_id") is not None:
        require(db, models.ResearchActivity, data["research_activity_id"], "Research activity")
    for field, value in data.items():
        old_value = getattr(publication, field)
        if old_value == value:
            continue
        setattr(publication, field, value)
        record_manuscript_history(
            db,
            publication,
            changed_field=field,
            old_value=old_value,
            new_value=value,
            changed_by=payload.changed_by,
            change_reason=f"{field} updated",
        )
    publication.updated_at = _utcnow()
    db.flush()
    db.refresh(publication)
    return publication


def change_status(
    db: Session,
    publication: models.Publication,
    payload: schemas.PublicationStatusUpdate,
) -> StatusChange:
    """Validate and apply a status change with its history rows.

    Gating looks at the stored row overlaid with ``updated_fields``; nothing is
    written unless both the transition and the gating checks pass.
    """

    require(db, models.Scientist, payload.changed_by, "Scientist")
    current = workflow.current_status(publication.status)
    target = payload.status
    workflow.validate_transition(current, target)

    updated = payload.updated_fields.model_dump(exclude_unset=True) if payload.updated_fields else {}
    merged: dict[str, Any] = {field: getattr(publication, field) for field in _GATED_FIELDS}
    merged.update(updated)
    workflow.validate_gating(target, merged)

    for field, value in updated.items():
        setattr(publication, field, value)
    publication.status = target
    publication.updated_at = _utcnow()
    record_manuscript_history(
        db,
        publication,
        from_status=current,
        to_status=target,
        changed_by=payload.changed_by,
        change_reason=f"Status changed from {current} to {target}",
    )
    for change in payload.changes:
        record_manuscript_history(
            db,
            publication,
            changed_field=change.field,
            old_value=change.old_value,
            new_value=change.new_value,
            changed_by=payload.changed_by,
            change_reason=f"{change.field} changed during status transition",
        )
    db.flush()
    logger.info(
        "publication_status_changed",
        publication_id=str(publication.id),
        status_from=current,
        status_to=target,
    )
    return StatusChange(current, target, current, target)


def list_history(db: Session, publication: models.Publication) -> Sequence[models.ManuscriptHistory]:
    return (
        db.query(models.ManuscriptHistory)
        .filter(models.ManuscriptHistory.publication_id == publication.id)
        .order_by(models.ManuscriptHistory.created_at.desc(), models.ManuscriptHistory.sequence.desc())
        .all()
    )


def delete_publication(db: Session, publication: models.Publication) -> None:
    db.delete(publication)
    db.flush()


def _split_types(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def merge_authorship_types(existing: str | None, incoming: str | None) -> str:
    """Union of two comma-separated authorship type lists, first-seen order."""
    return ", ".join(dict.fromkeys(_split_types(existing) + _split_types(incoming)))


def list_authors(db: Session, publication: models.Publication) -> Sequence[models.PublicationAuthor]:
    return (
        db.query(models.PublicationAuthor)
        .filter(models.PublicationAuthor.publication_id == publication.id)
        .order_by(models.PublicationAuthor.author_position.is_(None), models.PublicationAuthor.author_position.asc())
        .all()
    )


def add_author(
    db: Session,
    publication: models.Publication,
    payload: schemas.PublicationAuthorCreate,
) -> tuple[models.PublicationAuthor, bool]:
    """Add an author, or merge authorship types into an existing one.

    Returns the author row and whether it was newly created.
    """

    require(db, models.Scientist, payload.scientist_id, "Scientist")
    if not _split_types(payload.authorship_type):
        raise InvalidRequest("authorship_type is required")
    author = (
        db.query(models.PublicationAuthor)
        .filter_by(publication_id=publication.id, scientist_id=payload.scientist_id)
        .first()
    )
    if author is not None:
        author.authorship_type = merge_authorship_types(author.authorship_type, payload.authorship_type)
        if payload.author_position is not None:
            author.author_position = payload.author_position
        db.flush()
        return author, False
    author = models.PublicationAuthor(
        publication_id=publication.id,
        scientist_id=payload.scientist_id,
        authorship_type=merge_authorship_types(None, payload.authorship_type),
        author_position=payload.author_position,
    )
    db.add(author)
    db.flush()
    db.refresh(author)
    return author, True


def remove_author(db: Session, publication: models.Publication, scientist_id: UUID) -> None:
    author = (
        db.query(models.PublicationAuthor)
        .filter_by(publication_id=publication.id, scientist_id=scientist_id)
        .first()
    )
    if author is None:
        raise NotFound("Author not found")
    db.delete(author)
    db.flush()


def ensure_unique_identifiers(db: Session, *, doi: str | None = None, pmid: str | None = None) -> None:
    if doi:
        clash = db.query(models.Publication).filter(sa.func.lower(models.Publication.doi) == doi.strip().lower()).first()
        if clash is not None:
            raise Conflict(f"A publication with DOI {doi} already exists")
    if pmid:
        clash = db.query(models.Publication).filter(models.Publication.pmid == str(pmid).strip()).first()
        if clash is not None:
            raise Conflict(f"A publication with PMID {pmid} already exists")


def create_imported(
    db: Session,
    metadata: dict[str, Any],
    *,
    research_activity_id: UUID | None = None,
) -> models.Publication:
    """Create a Published record from CrossRef or PubMed metadata."""

    if research_activity_id is not None:
        require(db, models.ResearchActivity, research_activity_id, "Research activity")
    ensure_unique_identifiers(db, doi=metadata.get("doi"), pmid=metadata.get("pmid"))
    fields = {column: metadata.get(column) for column in (
        "title",
        "authors",
        "journal",
        "volume",
        "issue",
        "pages",
        "doi",
        "pmid",
        "publication_date",
        "publication_type",
    )}
    if not fields["title"]:
        raise InvalidRequest("Imported record has no title")
    publication = models.Publication(
        **fields,
        research_activity_id=research_activity_id,
        status=workflow.PUBLISHED,
    )
    db.add(publication)
    db.flush()
    db.refresh(publication)
    logger.info("publication_imported", publication_id=str(publication.id), doi=publication.doi, pmid=publication.pmid)
    return publication
