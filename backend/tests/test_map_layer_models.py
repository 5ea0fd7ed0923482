"""Tests for Map, Layer, MapLayer and dependency ORM model definitions."""

import pytest
from sqlalchemy.dialects.postgresql import BOOLEAN, INTEGER, JSONB, TEXT, UUID as PG_UUID

from db.models.analysis_node import AnalysisNodeRecord, AnalysisNodeSource
from db.models.layer import Layer
from db.models.map import Map
from db.models.map_layer import MapLayer
from db.models.user_table import LayerUserTable, UserTable
from db.models.visualization import Visualization


def _assert_uuid_pk(columns):
    id_col = columns["id"]
    assert isinstance(id_col.type, PG_UUID)
    assert id_col.primary_key
    assert id_col.server_default is not None
    assert id_col.server_default.arg.text == "gen_random_uuid()"


def _fk_targets(column):
    return {fk.target_fullname for fk in column.foreign_keys}


@pytest.mark.unit
def test_map_model_columns():
    """Verify the Map ORM model columns and their properties."""
    assert Map.__tablename__ == "maps"

    columns = {col.name: col for col in Map.__table__.columns}
    _assert_uuid_pk(columns)

    owner_col = columns["owner_id"]
    assert isinstance(owner_col.type, PG_UUID)
    assert owner_col.nullable
    assert _fk_targets(owner_col) == {"users.id"}

    assert isinstance(columns["name"].type, TEXT)
    assert not columns["name"].nullable
    assert columns["description"].nullable


@pytest.mark.unit
def test_visualization_model_columns():
    assert Visualization.__tablename__ == "visualizations"

    columns = {col.name: col for col in Visualization.__table__.columns}
    _assert_uuid_pk(columns)

    map_col = columns["map_id"]
    assert _fk_targets(map_col) == {"maps.id"}
    assert map_col.unique
    assert not map_col.nullable


@pytest.mark.unit
def test_layer_model_columns():
    """Verify the Layer ORM model columns and their properties."""
    assert Layer.__tablename__ == "layers"

    columns = {col.name: col for col in Layer.__table__.columns}
    _assert_uuid_pk(columns)

    kind_col = columns["kind"]
    assert isinstance(kind_col.type, TEXT)
    assert not kind_col.nullable

    options_col = columns["options"]
    assert isinstance(options_col.type, JSONB)
    assert not options_col.nullable
    assert options_col.server_default.arg.text == "'{}'::jsonb"

    for name in ("infowindow", "tooltip"):
        assert isinstance(columns[name].type, JSONB)
        assert columns[name].nullable

    # Ownership comes through the map, never stored on the layer.
    assert "owner_id" not in columns


@pytest.mark.unit
def test_map_layer_model_columns():
    """Verify the MapLayer ORM model columns and their properties."""
    assert MapLayer.__tablename__ == "map_layers"

    columns = {col.name: col for col in MapLayer.__table__.columns}

    assert _fk_targets(columns["map_id"]) == {"maps.id"}
    assert _fk_targets(columns["layer_id"]) == {"layers.id"}

    z_index_col = columns["z_index"]
    assert isinstance(z_index_col.type, INTEGER)
    assert z_index_col.server_default.arg.text == "0"

    visible_col = columns["visible"]
    assert isinstance(visible_col.type, BOOLEAN)
    assert visible_col.server_default.arg.text == "true"

    assert set(MapLayer.__table__.primary_key.columns.keys()) == {"map_id", "layer_id"}


@pytest.mark.unit
def test_user_table_model_columns():
    assert UserTable.__tablename__ == "user_tables"

    columns = {col.name: col for col in UserTable.__table__.columns}
    _assert_uuid_pk(columns)
    assert _fk_targets(columns["user_id"]) == {"users.id"}
    assert not columns["name"].nullable
    assert columns["privacy"].server_default.arg.text == "'private'"

    constraint_names = {c.name for c in UserTable.__table__.constraints if getattr(c, "name", None)}
    assert "uq_user_tables_user_name" in constraint_names


@pytest.mark.unit
def test_layer_user_table_model_columns():
    assert LayerUserTable.__tablename__ == "layers_user_tables"

    columns = {col.name: col for col in LayerUserTable.__table__.columns}
    assert _fk_targets(columns["layer_id"]) == {"layers.id"}
    assert _fk_targets(columns["user_table_id"]) == {"user_tables.id"}
    assert set(LayerUserTable.__table__.primary_key.columns.keys()) == {
        "layer_id",
        "user_table_id",
    }


@pytest.mark.unit
def test_analysis_node_model_columns():
    assert AnalysisNodeRecord.__tablename__ == "analysis_nodes"

    columns = {col.name: col for col in AnalysisNodeRecord.__table__.columns}
    _assert_uuid_pk(columns)
    assert _fk_targets(columns["visualization_id"]) == {"visualizations.id"}
    assert isinstance(columns["params"].type, JSONB)
    assert isinstance(columns["options"].type, JSONB)

    constraint_names = {
        c.name for c in AnalysisNodeRecord.__table__.constraints if getattr(c, "name", None)
    }
    assert "uq_analysis_nodes_visualization_natural_id" in constraint_names

    edge_columns = {col.name: col for col in AnalysisNodeSource.__table__.columns}
    assert _fk_targets(edge_columns["node_id"]) == {"analysis_nodes.id"}
    assert _fk_targets(edge_columns["source_node_id"]) == {"analysis_nodes.id"}
