"""Shared base for PATCH payloads."""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, model_validator


class PartialUpdate(BaseModel):
    """Omitted fields are left alone; an explicit null clears a field.

    Fields listed in ``required_fields`` back NOT NULL columns, so a null
    for them is a validation error rather than a cleared value.
    """

    required_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required_fields(self):
        nulled = [
            name
            for name in self.required_fields
            if name in self.model_fields_set and getattr(self, name) is None
        ]
        if nulled:
            raise ValueError(f"{', '.join(nulled)} cannot be null")
        return self
