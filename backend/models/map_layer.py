"""Pydantic models for map-layer composition."""

from pydantic import ConfigDict

from models.layer import LayerRead


class MapLayerRead(LayerRead):
    """Layer details with map-specific metadata."""

    z_index: int
    visible: bool

    model_config = ConfigDict(from_attributes=True, extra="forbid")
