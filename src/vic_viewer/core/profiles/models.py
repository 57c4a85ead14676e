"""Log profile schema.

A profile describes how to read canonical fields out of schema-less records. It
is plain configuration interpreted by the field resolver; adding a new log shape
means writing a new profile, not new code.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _ProfileModel(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class SingleField(BaseModel):
    """Selector reading exactly one raw field."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    field: str = Field(min_length=1)


class FallbackFields(BaseModel):
    """Selector trying several raw fields in order."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    fields: tuple[str, ...] = Field(min_length=1)

    @model_validator(mode="after")
    def _non_empty_names(self) -> FallbackFields:
        if any(not name for name in self.fields):
            raise ValueError("fallback field names must be non-empty")
        return self


FieldSelector = SingleField | FallbackFields


class CoreFields(_ProfileModel):
    time: FieldSelector
    message: FieldSelector
    stream_id: FieldSelector | None = None
    stream: FieldSelector | None = None
    severity: FieldSelector | None = None
    service_name: FieldSelector | None = None
    trace_id: FieldSelector | None = None
    span_id: FieldSelector | None = None


class TieBreaker(_ProfileModel):
    fields: tuple[str, ...] = Field(min_length=1)


class ProfileField(_ProfileModel):
    """Column or detail entry shown for a row."""

    id: str | None = Field(default=None, min_length=1)
    title: str | None = Field(default=None, min_length=1)
    field: str | None = Field(default=None, min_length=1)
    fields: tuple[str, ...] | None = Field(default=None, min_length=1)
    type: Literal["sql", "StructuredLoggingFields", "RemainingFields"] | None = None
    hidden: bool | None = None

    @model_validator(mode="after")
    def _check_field_source(self) -> ProfileField:
        has_single = self.field is not None
        has_fallback = bool(self.fields)
        if has_single and has_fallback:
            raise ValueError("Field entries must provide either 'field' or 'fields', not both")

        if self.type in ("StructuredLoggingFields", "RemainingFields"):
            if has_single or has_fallback:
                raise ValueError("Special field entries cannot define 'field' or 'fields'")
            return self

        if not has_single and not has_fallback:
            raise ValueError("Field entries must define either 'field' or 'fields'")
        return self

    @property
    def selector(self) -> FieldSelector | None:
        if self.field is not None:
            return SingleField(field=self.field)
        if self.fields:
            return FallbackFields(fields=self.fields)
        return None


class LogTable(_ProfileModel):
    columns: tuple[ProfileField, ...] = Field(min_length=1)


class FieldSet(_ProfileModel):
    id: str | None = Field(default=None, min_length=1)
    name: str = Field(min_length=1)
    fields: tuple[ProfileField, ...] = Field(min_length=1)


class LogDetails(_ProfileModel):
    field_sets: tuple[FieldSet, ...] = Field(min_length=1)


class LogProfile(_ProfileModel):
    """Versioned, named configuration for reading log records."""

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    version: int = Field(ge=1)
    core_fields: CoreFields
    tie_breaker: TieBreaker
    log_table: LogTable
    log_details: LogDetails

    @property
    def identity(self) -> dict[str, str | int]:
        """Identity used in query fingerprints: ``{"id", "version"}``."""
        return {"id": self.id, "version": self.version}
