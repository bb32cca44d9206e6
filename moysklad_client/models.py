"""
Pydantic models for MoySklad API payloads consumed by the request core.
"""

from __future__ import annotations

from typing import Any, Generic, Mapping, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

RowT = TypeVar("RowT")


def _to_mapping(payload: Any) -> Mapping[str, Any]:
    if isinstance(payload, Mapping):
        return payload
    if isinstance(payload, BaseModel):
        return payload.model_dump(by_alias=True)
    if hasattr(payload, "__dict__"):
        return _to_mapping(vars(payload))
    raise TypeError(f"Cannot convert payload of type {type(payload)!r} to mapping.")


class ListMeta(BaseModel):
    """Collection metadata; ``size`` is the total across all pages."""

    size: int = 0
    limit: int | None = None
    offset: int | None = None
    href: str | None = None

    model_config = ConfigDict(extra="allow")


class ListEnvelope(BaseModel, Generic[RowT]):
    """One page of a collection endpoint."""

    rows: list[RowT] = Field(default_factory=list)
    meta: ListMeta = Field(default_factory=ListMeta)
    context: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="allow")

    @property
    def total_size(self) -> int:
        return self.meta.size

    @classmethod
    def from_api(cls, payload: Any) -> "ListEnvelope[Any]":
        if isinstance(payload, ListEnvelope):
            return payload
        return cls.model_validate(_to_mapping(payload))


class BatchResult(BaseModel, Generic[RowT]):
    """Rows of several pages flattened in ascending offset order."""

    rows: list[RowT] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)


class ApiErrorDetail(BaseModel):
    error: str | None = None
    code: int | None = None
    more_info: str | None = Field(default=None, alias="moreInfo")

    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ErrorPayload(BaseModel):
    """Body of a non-2xx MoySklad response."""

    errors: list[ApiErrorDetail] = Field(default_factory=list)

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_api(cls, payload: Any) -> "ErrorPayload":
        if not isinstance(payload, Mapping):
            return cls()
        try:
            return cls.model_validate(payload)
        except ValidationError:
            return cls()

    @property
    def first(self) -> ApiErrorDetail | None:
        return self.errors[0] if self.errors else None
