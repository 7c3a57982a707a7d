"""Scientist publication reports and the impact-weighted Sidra score."""

from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Any, Iterable
from uuid import UUID

from sqlalchemy.orm import Session

from .. import models, schemas
from ..config import SIDRA_DEFAULT_MULTIPLIER
from ..workflows.publication import PUBLISHED_STATUSES
from . import require

# purpose: read-only bibliometric aggregation over published output and journal metrics
# inputs: SQLAlchemy session, reporting window, impact-factor year policy, multipliers
# outputs: per-scientist publication lists, authorship counts and ranked scores
# status: active

WEIGHTED_AUTHORSHIP_TYPES = ("First Author", "Last Author", "Senior Author", "Corresponding Author")


def window_start(years: int, today: date | None = None) -> date:
    today = today or date.today()
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # 29 February in a non-leap target year
        return today.replace(year=today.year - years, day=28)


def in_window(publication: models.Publication, cutoff: date) -> bool:
    return publication.publication_date is None or publication.publication_date >= cutoff


def split_authorship_types(value: str | None) -> list[str]:
    return [part.strip() for part in (value or "").split(",") if part.strip()]


def _published_rows(db: Session, scientist_id: UUID | None = None):
    query = (
        db.query(models.PublicationAuthor, models.Publication)
        .join(models.Publication, models.PublicationAuthor.publication_id == models.Publication.id)
        .filter(models.Publication.status.in_(PUBLISHED_STATUSES))
    )
    if scientist_id is not None:
        query = query.filter(models.PublicationAuthor.scientist_id == scientist_id)
    return query.all()


def _sort_key(publication: models.Publication):
    # dated papers newest first, undated ones last
    return (publication.publication_date is None, -(publication.publication_date or date.min).toordinal())


def scientist_publications(db: Session, scientist_id: UUID, years: int) -> list[dict[str, Any]]:
    """Published or in-press papers for one scientist, undated papers included."""

    require(db, models.Scientist, scientist_id, "Scientist")
    cutoff = window_start(years)
    rows = [(author, publication) for author, publication in _published_rows(db, scientist_id) if in_window(publication, cutoff)]
    rows.sort(key=lambda row: _sort_key(row[1]))
    results = []
    for author, publication in rows:
        item = schemas.PublicationOut.model_validate(publication).model_dump()
        item["authorship_type"] = author.authorship_type
        item["author_position"] = author.author_position
        results.append(item)
    return results


def authorship_stats(db: Session, scientist_id: UUID, years: int) -> dict[str, Any]:
    """Count papers per year and per authorship type within the window."""

    require(db, models.Scientist, scientist_id, "Scientist")
    cutoff = window_start(years)
    by_year: dict[str, dict[str, int]] = defaultdict(lambda: defaultdict(int))
    by_type: dict[str, int] = defaultdict(int)
    total = 0
    for author, publication in _published_rows(db, scientist_id):
        if not in_window(publication, cutoff):
            continue
        total += 1
        year_key = str(publication.publication_date.year) if publication.publication_date else "undated"
        for authorship_type in split_authorship_types(author.authorship_type) or ["Unspecified"]:
            by_year[year_key][authorship_type] += 1
            by_type[authorship_type] += 1
    return {
        "scientist_id": scientist_id,
        "years": years,
        "total_publications": total,
        "by_year": {year: dict(counts) for year, counts in sorted(by_year.items(), reverse=True)},
        "by_type": dict(by_type),
    }


class ImpactFactorIndex:
    """Journal impact factors keyed by lower-cased full and abbreviated names."""

    def __init__(self, rows: Iterable[models.JournalImpactFactor]):
        self._factors: dict[str, dict[int, float]] = defaultdict(dict)
        for row in rows:
            for name in (row.journal_name, row.abbreviated_journal):
                if name and name.strip():
                    self._factors[name.strip().lower()][row.year] = row.impact_factor

    def years_for(self, journal: str | None) -> dict[int, float]:
        if not journal:
            return {}
        return self._factors.get(journal.strip().lower(), {})

    def lookup(self, journal: str | None, target_year: int | None) -> tuple[float, int | None]:
        """Factor for the newest year at or before ``target_year``, else the oldest later year."""

        by_year = self.years_for(journal)
        if not by_year:
            return 0.0, None
        if target_year is None:
            year = max(by_year)
            return by_year[year], year
        earlier = [year for year in by_year if year <= target_year]
        year = max(earlier) if earlier else min(by_year)
        return by_year[year], year


def _target_year(policy, publication: models.Publication, today: date) -> int | None:
    paper_year = publication.publication_date.year if publication.publication_date else today.year
    if policy == "publication":
        return paper_year
    if policy == "prior":
        return paper_year - 1
    if policy == "latest":
        return None
    return int(policy)


def _multiplier_table(overrides: dict[str, float]) -> dict[str, float]:
    table = {name.lower(): SIDRA_DEFAULT_MULTIPLIER for name in WEIGHTED_AUTHORSHIP_TYPES}
    table.update({name.strip().lower(): value for name, value in overrides.items()})
    return table


def paper_multiplier(authorship_types: list[str], table: dict[str, float]) -> float:
    if not authorship_types:
        return 1.0
    return max(table.get(name.lower(), 1.0) for name in authorship_types)


def sidra_scores(db: Session, request: schemas.SidraScoreRequest, today: date | None = None) -> list[dict[str, Any]]:
    """Rank scientists by the impact-weighted sum of their papers in the window."""

    today = today or date.today()
    cutoff = window_start(request.years, today)
    index = ImpactFactorIndex(db.query(models.JournalImpactFactor).all())
    table = _multiplier_table(request.multipliers)

    entries: dict[UUID, dict[str, Any]] = {}
    for author, publication in _published_rows(db):
        if not in_window(publication, cutoff):
            continue
        target = _target_year(request.impact_factor_year, publication, today)
        factor, factor_year = index.lookup(publication.journal, target)
        types = split_authorship_types(author.authorship_type)
        multiplier = paper_multiplier(types, table)
        score = factor * multiplier

        entry = entries.get(author.scientist_id)
        if entry is None:
            scientist = db.get(models.Scientist, author.scientist_id)
            entry = entries[author.scientist_id] = {
                "scientist_id": author.scientist_id,
                "name": scientist.name if scientist else "",
                "department": scientist.department if scientist else None,
                "sidra_score": 0.0,
                "publications_count": 0,
                "publications": [],
            }
        entry["sidra_score"] += score
        entry["publications_count"] += 1
        entry["publications"].append(
            {
                "publication_id": publication.id,
                "title": publication.title,
                "journal": publication.journal,
                "publication_date": publication.publication_date,
                "authorship_types": types,
                "impact_factor": factor,
                "impact_factor_year": factor_year,
                "multiplier": multiplier,
                "score": round(score, 3),
            }
        )

    ranked = sorted(entries.values(), key=lambda entry: (-entry["sidra_score"], entry["name"]))
    for entry in ranked:
        entry["sidra_score"] = round(entry["sidra_score"], 3)
        entry["publications"].sort(key=lambda paper: -paper["score"])
    return ranked
