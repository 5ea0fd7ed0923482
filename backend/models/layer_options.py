"""Typed view over the free-form layer ``options`` blob."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class LayerOptions(BaseModel):
    """Layer configuration parsed once at the boundary.

    Only the keys the backend reads are typed; everything else the editor
    stores is preserved as extra fields. Blank strings are normalised to
    ``None`` so callers can test presence with a plain ``if``.
    """

    query: Optional[str] = None
    table_name: Optional[str] = None
    user_name: Optional[str] = None
    source: Optional[str] = None
    query_wrapper: Optional[str] = None
    legend: Optional[Any] = None
    labels: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="allow")

    @field_validator("query", "table_name", "user_name", "source", "query_wrapper", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if value is None:
            return None
        if not isinstance(value, str):
            value = str(value)
        return value if value.strip() else None

    @field_validator("labels", mode="before")
    @classmethod
    def _labels_must_be_mapping(cls, value: Any) -> Any:
        return value if isinstance(value, dict) else None

    @classmethod
    def parse(cls, raw: Optional[Dict[str, Any]]) -> "LayerOptions":
        """Build from a stored blob; ``None`` yields empty options."""
        return cls.model_validate(dict(raw or {}))
