"""Package for ORM model definitions."""

from db.models.analysis_node import AnalysisNodeRecord, AnalysisNodeSource
from db.models.layer import Layer
from db.models.map import Map
from db.models.map_layer import MapLayer
from db.models.user import User
from db.models.user_table import LayerUserTable, UserTable
from db.models.visualization import Visualization

__all__ = [
    "AnalysisNodeRecord",
    "AnalysisNodeSource",
    "Layer",
    "LayerUserTable",
    "Map",
    "MapLayer",
    "User",
    "UserTable",
    "Visualization",
]
