"""Tests for layer classification and query construction."""

from pathlib import Path
from uuid import uuid4

import pytest

from conftest import make_layer, make_user
from db.models.layer import Layer

BASE_KINDS = ["tiled", "background", "gmapsbase", "wms"]
DATA_KINDS = ["carto", "torque"]


@pytest.mark.unit
@pytest.mark.parametrize("kind", BASE_KINDS)
def test_base_kinds_are_not_data_layers(kind):
    layer = make_layer(kind)
    assert layer.is_base
    assert not layer.is_data_layer
    assert layer.is_user_layer
    assert layer.is_named_map_layer


@pytest.mark.unit
@pytest.mark.parametrize("kind", DATA_KINDS)
def test_other_kinds_are_data_layers(kind):
    layer = make_layer(kind)
    assert not layer.is_base
    assert layer.is_data_layer
    assert not layer.is_user_layer


@pytest.mark.unit
def test_basemap_kinds():
    assert make_layer("gmapsbase").is_basemap
    assert make_layer("tiled").is_basemap
    assert not make_layer("background").is_basemap
    assert not make_layer("wms").is_basemap
    assert not make_layer("carto").is_basemap


@pytest.mark.unit
def test_single_kind_predicates():
    assert make_layer("carto").is_carto
    assert make_layer("carto").is_named_map_layer
    assert make_layer("torque").is_torque
    assert not make_layer("torque").is_named_map_layer
    assert make_layer("tiled").is_tiled
    assert make_layer("background").is_background
    assert make_layer("gmapsbase").is_gmapsbase
    assert make_layer("wms").is_wms
    assert not make_layer("carto").is_torque


@pytest.mark.unit
def test_supports_labels_layer():
    assert make_layer("tiled", labels={"url": "http://tiles/{z}/{x}/{y}.png"}).supports_labels_layer
    assert not make_layer("tiled", labels={}).supports_labels_layer
    assert not make_layer("carto", labels={"url": "http://x"}).supports_labels_layer


@pytest.mark.unit
def test_legend_is_read_once():
    layer = make_layer(legend={"type": "bubble"})
    assert layer.legend == {"type": "bubble"}
    layer.options = {"legend": {"type": "choropleth"}}
    assert layer.legend == {"type": "bubble"}


@pytest.mark.unit
def test_default_query_prefers_explicit_query():
    layer = make_layer(query="SELECT cartodb_id FROM foo", table_name="bar", user_name="bob")
    assert layer.default_query(make_user("alice")) == "SELECT cartodb_id FROM foo"


@pytest.mark.unit
def test_default_query_qualifies_other_owners_table():
    layer = make_layer(table_name="foo", user_name="bob")
    assert layer.default_query(make_user("alice")) == 'SELECT * FROM "bob".foo'


@pytest.mark.unit
def test_default_query_for_owner_is_unqualified():
    layer = make_layer(table_name="foo", user_name="alice")
    assert layer.default_query(make_user("alice")) == "SELECT * FROM foo"


@pytest.mark.unit
def test_default_query_never_prefixes_dotted_name():
    layer = make_layer(table_name="public.foo", user_name="bob")
    assert layer.default_query(make_user("alice")) == "SELECT * FROM public.foo"


@pytest.mark.unit
def test_default_query_without_user():
    layer = make_layer(table_name="foo")
    assert layer.default_query() == "SELECT * FROM foo"


@pytest.mark.unit
def test_default_query_quotes_unsafe_table_names():
    layer = make_layer(table_name="my-table", user_name="bob")
    assert layer.default_query(make_user("alice")) == 'SELECT * FROM "bob"."my-table"'


@pytest.mark.unit
def test_qualified_table_name_with_schema_owner():
    layer = make_layer(table_name="foo")
    owner = make_user("carol", database_schema="team")
    assert layer.qualified_table_name(owner) == '"team".foo'
    assert layer.qualified_table_name() == "foo"
    assert make_layer(table_name="x.foo").qualified_table_name(owner) == "x.foo"


@pytest.mark.unit
def test_wrapped_sql_for_torque_layer():
    layer = make_layer(
        "torque",
        table_name="foo",
        query_wrapper="SELECT * FROM (%sql%) AS wrapped",
    )
    assert layer.wrapped_sql(make_user("alice")) == "SELECT * FROM (SELECT * FROM foo) AS wrapped"


@pytest.mark.unit
def test_wrapped_sql_accepts_legacy_placeholder():
    layer = make_layer(
        "torque", query="SELECT 1", query_wrapper="WITH q AS (<%= sql %>) SELECT * FROM q"
    )
    assert layer.wrapped_sql() == "WITH q AS (SELECT 1) SELECT * FROM q"


@pytest.mark.unit
def test_wrapped_sql_ignores_wrapper_for_other_kinds():
    layer = make_layer("carto", query="SELECT 1", query_wrapper="SELECT * FROM (%sql%) w")
    assert layer.wrapped_sql() == "SELECT 1"


@pytest.mark.unit
def test_wrapped_sql_without_wrapper():
    assert make_layer("torque", query="SELECT 1").wrapped_sql() == "SELECT 1"


@pytest.mark.unit
def test_template_paths(monkeypatch, tmp_path):
    monkeypatch.setenv("LAYER_TEMPLATES_DIR", str(tmp_path))
    layer = Layer(
        id=uuid4(),
        kind="carto",
        options={},
        infowindow={"template_name": "table/views/infowindow_dark"},
        tooltip={"template_name": "tooltip_light"},
    )

    assert layer.infowindow_template_path() == Path(tmp_path) / "infowindow" / (
        "infowindow_dark.jst.mustache"
    )
    assert layer.tooltip_template_path() == Path(tmp_path) / "tooltip" / (
        "tooltip_light.jst.mustache"
    )
    assert make_layer().infowindow_template_path() is None
