from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from .. import models, pubsub, schemas
from ..database import get_db
from ..external import ExternalLookupError, ExternalRecordNotFound, fetch_crossref_work, fetch_pubmed_article
from ..services import publications as service
from .common import commit, service_errors

# purpose: HTTP surface for manuscripts, their status pipeline, authorship and imports
# status: active

router = APIRouter(prefix="/api/publications", tags=["publications"])


def _get_publication_or_404(db: Session, publication_id: UUID) -> models.Publication:
    with service_errors(db):
        return service.get_publication(db, publication_id)


@router.post("", response_model=schemas.PublicationOut, status_code=status.HTTP_201_CREATED)
def create_publication(payload: schemas.PublicationCreate, db: Session = Depends(get_db)):
    with service_errors(db):
        publication = service.create_publication(db, payload)
    commit(db, publication)
    return publication


@router.post("/import", response_model=schemas.PublicationOut, status_code=status.HTTP_201_CREATED)
def import_publication(payload: schemas.PublicationImport, db: Session = Depends(get_db)):
    with service_errors(db):
        service.ensure_unique_identifiers(db, doi=payload.doi, pmid=payload.pmid)
    source = "CrossRef" if payload.doi else "PubMed"
    try:
        if payload.doi:
            metadata = fetch_crossref_work(payload.doi)
        else:
            metadata = fetch_pubmed_article(payload.pmid)
    except ExternalRecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except ExternalLookupError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=f"Failed to reach {source}") from exc
    with service_errors(db):
        publication = service.create_imported(
            db,
            metadata,
            research_activity_id=payload.research_activity_id,
        )
    commit(db, publication)
    return publication


@router.get("", response_model=list[schemas.PublicationOut])
def list_publications(
    research_activity_id: UUID | None = None,
    status: str | None = None,
    db: Session = Depends(get_db),
):
    return service.list_publications(db, research_activity_id=research_activity_id, status=status)


@router.get("/{publication_id}", response_model=schemas.PublicationOut)
def get_publication(publication_id: UUID, db: Session = Depends(get_db)):
    return _get_publication_or_404(db, publication_id)


@router.patch("/{publication_id}", response_model=schemas.PublicationOut)
def update_publication(
    publication_id: UUID,
    payload: schemas.PublicationUpdate,
    db: Session = Depends(get_db),
):
    publication = _get_publication_or_404(db, publication_id)
    with service_errors(db):
        service.update_publication(db, publication, payload)
    commit(db, publication)
    return publication


@router.delete("/{publication_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_publication(publication_id: UUID, db: Session = Depends(get_db)):
    publication = _get_publication_or_404(db, publication_id)
    service.delete_publication(db, publication)
    commit(db)


@router.patch("/{publication_id}/status", response_model=schemas.PublicationOut)
async def change_publication_status(
    publication_id: UUID,
    payload: schemas.PublicationStatusUpdate,
    db: Session = Depends(get_db),
):
    publication = _get_publication_or_404(db, publication_id)
    with service_errors(db):
        change = service.change_status(db, publication, payload)
    commit(db, publication)
    await pubsub.publish_workflow_event(
        "publication",
        {
            "kind": "publication",
            "publication_id": publication.id,
            "title": publication.title,
            "status_from": change.status_from,
            "status_to": change.status_to,
        },
    )
    return publication


@router.get("/{publication_id}/history", response_model=list[schemas.ManuscriptHistoryOut])
def get_publication_history(publication_id: UUID, db: Session = Depends(get_db)):
    publication = _get_publication_or_404(db, publication_id)
    return service.list_history(db, publication)


@router.get("/{publication_id}/authors", response_model=list[schemas.PublicationAuthorOut])
def list_publication_authors(publication_id: UUID, db: Session = Depends(get_db)):
    publication = _get_publication_or_404(db, publication_id)
    return service.list_authors(db, publication)


@router.post(
    "/{publication_id}/authors",
    response_model=schemas.PublicationAuthorOut,
    status_code=status.HTTP_201_CREATED,
)
def add_publication_author(
    publication_id: UUID,
    payload: schemas.PublicationAuthorCreate,
    response: Response,
    db: Session = Depends(get_db),
):
    publication = _get_publication_or_404(db, publication_id)
    with service_errors(db):
        author, created = service.add_author(db, publication, payload)
    commit(db, author)
    if not created:
        response.status_code = status.HTTP_200_OK
    return author


@router.delete("/{publication_id}/authors/{scientist_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_publication_author(publication_id: UUID, scientist_id: UUID, db: Session = Depends(get_db)):
    publication = _get_publication_or_404(db, publication_id)
    with service_errors(db):
        service.remove_author(db, publication, scientist_id)
    commit(db)
