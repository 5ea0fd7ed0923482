"""Pydantic models for layer CRUD."""

from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class LayerBase(BaseModel):
    """Shared fields for layer payloads."""

    kind: str
    options: Dict[str, Any] = {}
    infowindow: Optional[Dict[str, Any]] = None
    tooltip: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class LayerCreate(LayerBase):
    """Payload for creating a layer on a map."""

    map_id: UUID
    z_index: int = 0
    visible: bool = True


class LayerUpdate(BaseModel):
    """Payload for updating a layer. ``options`` is merged into the stored blob."""

    kind: Optional[str] = None
    options: Optional[Dict[str, Any]] = None
    infowindow: Optional[Dict[str, Any]] = None
    tooltip: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


class LayerRead(LayerBase):
    """Response model for a layer."""

    id: UUID

    model_config = ConfigDict(from_attributes=True, extra="forbid")


class LayerSql(BaseModel):
    """Queries used to render a layer for the requesting user."""

    default_query: str
    wrapped_sql: str
