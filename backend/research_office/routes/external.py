from fastapi import APIRouter, HTTPException, Query, status

from .. import schemas
from ..external import ExternalLookupError, ExternalRecordNotFound, fetch_crossref_work, search_pubmed

router = APIRouter(prefix="/api/external", tags=["external"])


@router.post("/pubmed", response_model=list[schemas.PubMedArticle])
def pubmed_search(payload: schemas.PubMedQuery):
    try:
        return search_pubmed(payload.query, payload.limit)
    except ExternalLookupError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to reach PubMed") from exc


@router.get("/crossref", response_model=schemas.CrossRefWork)
def crossref_lookup(doi: str = Query(..., min_length=1)):
    try:
        return fetch_crossref_work(doi)
    except ExternalRecordNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"DOI {doi} not found") from exc
    except ExternalLookupError as exc:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail="Failed to reach CrossRef") from exc
