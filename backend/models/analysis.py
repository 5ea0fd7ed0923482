"""Pydantic models for analysis graph payloads."""

from typing import Any, Dict, List, Tuple

from pydantic import BaseModel, ConfigDict


class AnalysisDefinitions(BaseModel):
    """Nested analysis definitions replacing a map's analysis graph.

    Each definition is ``{"id", "type", "params", "options"}``; a param that
    is itself such an object is a source of the enclosing node.
    """

    analyses: List[Dict[str, Any]]

    model_config = ConfigDict(extra="forbid")


class AnalysisNodeRead(BaseModel):
    natural_id: str
    type: str
    params: Dict[str, Any]
    options: Dict[str, Any]
    source_ids: Tuple[str, ...]

    model_config = ConfigDict(from_attributes=True)
