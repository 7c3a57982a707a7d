"""Per-year application number allocation backed by a counter row."""

from __future__ import annotations

import re
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .. import models
from ..logging_config import get_logger

# purpose: hand out IBC-/IRB- numbers that never repeat within a year
# inputs: session inside the caller's transaction, number prefix, year
# outputs: formatted "<prefix>-<year>-<seq:03d>" identifiers
# status: active

logger = get_logger(__name__)

_NUMBER_COLUMNS = {
    "IBC": models.IbcApplication.ibc_number,
    "IRB": models.IrbApplication.irb_number,
}

_NUMBER_PATTERN = re.compile(r"^(?P<prefix>[A-Z]+)-(?P<year>\d{4})-(?P<seq>\d+)$")


def format_number(prefix: str, year: int, value: int) -> str:
    return f"{prefix}-{year}-{value:03d}"


def _increment(db: Session, prefix: str, year: int) -> int | None:
    result = db.execute(
        sa.update(models.NumberSequence)
        .where(
            models.NumberSequence.prefix == prefix,
            models.NumberSequence.year == year,
        )
        .values(last_value=models.NumberSequence.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        return None
    return db.execute(
        sa.select(models.NumberSequence.last_value).where(
            models.NumberSequence.prefix == prefix,
            models.NumberSequence.year == year,
        )
    ).scalar_one()


def highest_existing(db: Session, prefix: str, year: int) -> int:
    """Largest sequence already used by stored numbers, imported ones included."""

    column = _NUMBER_COLUMNS.get(prefix)
    if column is None:
        return 0
    stem = f"{prefix}-{year}-"
    highest = 0
    for (number,) in db.query(column).filter(column.like(f"{stem}%")).all():
        suffix = number[len(stem):]
        if suffix.isdigit():
            highest = max(highest, int(suffix))
    return highest


def _create_sequence(db: Session, prefix: str, year: int, seed: int) -> None:
    try:
        with db.begin_nested():
            db.add(models.NumberSequence(prefix=prefix, year=year, last_value=seed))
    except IntegrityError:
        logger.info("number_sequence_insert_raced", prefix=prefix, year=year)


def next_application_number(db: Session, prefix: str, year: int | None = None) -> str:
    """Allocate the next number for ``prefix`` in ``year``.

    The counter row is bumped with a single UPDATE so concurrent allocators
    serialize on it. A missing row is created in a savepoint, seeded from the
    stored numbers, and the update is retried once if another writer created
    it first.
    """

    year = year or datetime.now(timezone.utc).year
    value = _increment(db, prefix, year)
    if value is None:
        _create_sequence(db, prefix, year, highest_existing(db, prefix, year))
        value = _increment(db, prefix, year)
        if value is None:
            raise RuntimeError(f"Number sequence for {prefix}-{year} could not be allocated")
    return format_number(prefix, year, value)


def _raise_to(db: Session, prefix: str, year: int, floor: int) -> int:
    result = db.execute(
        sa.update(models.NumberSequence)
        .where(
            models.NumberSequence.prefix == prefix,
            models.NumberSequence.year == year,
            models.NumberSequence.last_value < floor,
        )
        .values(last_value=floor)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def reserve_supplied_number(db: Session, prefix: str, number: str) -> None:
    """Move the counter past a caller-supplied ``<prefix>-<year>-<seq>`` number.

    Numbers in any other shape are stored as given and leave the counter alone.
    """

    match = _NUMBER_PATTERN.match(number)
    if match is None or match.group("prefix") != prefix:
        return
    year, supplied = int(match.group("year")), int(match.group("seq"))
    if _raise_to(db, prefix, year, supplied):
        return
    exists = db.execute(
        sa.select(models.NumberSequence.id).where(
            models.NumberSequence.prefix == prefix,
            models.NumberSequence.year == year,
        )
    ).first()
    if exists is None:
        _create_sequence(db, prefix, year, max(supplied, highest_existing(db, prefix, year)))
        # another writer may have created the row with a lower value
        _raise_to(db, prefix, year, supplied)
