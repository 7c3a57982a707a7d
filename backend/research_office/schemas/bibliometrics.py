"""Pydantic schemas for scientist publication reports and the Sidra score."""

from __future__ import annotations

from datetime import date
from typing import Literal, Union
from uuid import UUID

from pydantic import BaseModel, Field

from ..config import SIDRA_DEFAULT_YEARS
from .publications import PublicationOut


class ScientistPublicationOut(PublicationOut):
    authorship_type: str | None = None
    author_position: int | None = None


class AuthorshipStats(BaseModel):
    scientist_id: UUID
    years: int
    total_publications: int
    by_year: dict[str, dict[str, int]] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)


class SidraScoreRequest(BaseModel):
    years: int = Field(default=SIDRA_DEFAULT_YEARS, ge=1)
    impact_factor_year: Union[Literal["publication", "prior", "latest"], int] = "publication"
    multipliers: dict[str, float] = Field(default_factory=dict)


class SidraPaper(BaseModel):
    publication_id: UUID
    title: str
    journal: str | None = None
    publication_date: date | None = None
    authorship_types: list[str] = Field(default_factory=list)
    impact_factor: float
    impact_factor_year: int | None = None
    multiplier: float
    score: float


class SidraScore(BaseModel):
    scientist_id: UUID
    name: str
    department: str | None = None
    sidra_score: float
    publications_count: int
    publications: list[SidraPaper] = Field(default_factory=list)
