from __future__ import annotations

from datetime import date, datetime
from typing import Any

import requests

from .config import CROSSREF_BASE_URL, EXTERNAL_TIMEOUT, PUBMED_BASE_URL
from .logging_config import get_logger

# purpose: bibliographic lookups against PubMed E-utilities and CrossRef
# status: active

logger = get_logger(__name__)


class ExternalLookupError(RuntimeError):
    """Raised when an upstream bibliographic service cannot be reached or parsed."""


class ExternalRecordNotFound(ExternalLookupError):
    """Raised when the upstream service has no record for the identifier."""


def _get_json(url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    try:
        r = requests.get(url, params=params, timeout=EXTERNAL_TIMEOUT)
    except requests.RequestException as exc:
        logger.warning("external_lookup_failed", url=url, error=str(exc))
        raise ExternalLookupError(f"Failed to reach {url}") from exc
    if r.status_code == 404:
        raise ExternalRecordNotFound(f"No record found at {url}")
    try:
        r.raise_for_status()
        return r.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("external_lookup_failed", url=url, status=r.status_code, error=str(exc))
        raise ExternalLookupError(f"Unexpected response from {url}") from exc


def search_pubmed(query: str, limit: int = 5):
    params = {"db": "pubmed", "term": query, "retmode": "json", "retmax": limit}
    data = _get_json(PUBMED_BASE_URL + "esearch.fcgi", params)
    ids = data.get("esearchresult", {}).get("idlist", [])
    if not ids:
        return []
    summary = _get_json(
        PUBMED_BASE_URL + "esummary.fcgi",
        {"db": "pubmed", "id": ",".join(ids), "retmode": "json"},
    ).get("result", {})
    articles = []
    for _id in ids:
        info = summary.get(_id)
        if not info:
            continue
        articles.append({"id": info["uid"], "title": info.get("title", "")})
    return articles


def _parse_pubmed_date(info: dict[str, Any]) -> date | None:
    sort_date = (info.get("sortpubdate") or "")[:10]
    try:
        return datetime.strptime(sort_date, "%Y/%m/%d").date()
    except ValueError:
        return None


def fetch_pubmed_article(pmid: str) -> dict[str, Any]:
    """Return publication fields for a PubMed id."""

    summary = _get_json(
        PUBMED_BASE_URL + "esummary.fcgi",
        {"db": "pubmed", "id": pmid, "retmode": "json"},
    ).get("result", {})
    info = summary.get(str(pmid))
    if not info or info.get("error"):
        raise ExternalRecordNotFound(f"PubMed has no record for PMID {pmid}")
    doi = next(
        (item.get("value") for item in info.get("articleids", []) if item.get("idtype") == "doi"),
        None,
    )
    return {
        "title": info.get("title", "").rstrip("."),
        "authors": ", ".join(a.get("name", "") for a in info.get("authors", []) if a.get("name")),
        "journal": info.get("fulljournalname") or info.get("source"),
        "volume": info.get("volume") or None,
        "issue": info.get("issue") or None,
        "pages": info.get("pages") or None,
        "doi": doi,
        "pmid": str(pmid),
        "publication_date": _parse_pubmed_date(info),
        "publication_type": "Journal Article",
    }


def _first(values: Any) -> str | None:
    if isinstance(values, list):
        return values[0] if values else None
    return values


def _parse_crossref_date(message: dict[str, Any]) -> date | None:
    for key in ("published-print", "published-online", "issued"):
        parts = (message.get(key) or {}).get("date-parts") or []
        if parts and parts[0] and parts[0][0]:
            year, month, day = (list(parts[0]) + [1, 1])[:3]
            return date(int(year), int(month or 1), int(day or 1))
    return None


def fetch_crossref_work(doi: str) -> dict[str, Any]:
    """Return publication fields for a DOI registered with CrossRef."""

    message = _get_json(CROSSREF_BASE_URL + doi.strip()).get("message")
    if not message:
        raise ExternalLookupError(f"CrossRef returned no metadata for {doi}")
    authors = []
    for author in message.get("author", []):
        name = " ".join(part for part in (author.get("given"), author.get("family")) if part)
        if name:
            authors.append(name)
    return {
        "doi": message.get("DOI", doi),
        "title": _first(message.get("title")) or "",
        "journal": _first(message.get("container-title")),
        "authors": ", ".join(authors) or None,
        "volume": message.get("volume"),
        "issue": message.get("issue"),
        "pages": message.get("page"),
        "publication_date": _parse_crossref_date(message),
        "publication_type": message.get("type"),
    }
