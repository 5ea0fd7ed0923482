"""ORM model for the layers table."""

from functools import cached_property
from pathlib import Path
from typing import Any, Optional

from sqlalchemy import Column, text
from sqlalchemy.dialects.postgresql import JSONB, TEXT, UUID

from core.config import get_layer_templates_dir
from db.base import Base
from models.layer_options import LayerOptions
from utility.string_methods import quote_identifier, safe_table_name_quoting

KIND_CARTO = "carto"
KIND_TORQUE = "torque"
KIND_TILED = "tiled"
KIND_BACKGROUND = "background"
KIND_GMAPSBASE = "gmapsbase"
KIND_WMS = "wms"

BASE_KINDS = frozenset({KIND_TILED, KIND_BACKGROUND, KIND_GMAPSBASE, KIND_WMS})
BASEMAP_KINDS = frozenset({KIND_GMAPSBASE, KIND_TILED})

# Placeholders a torque query wrapper may use for the wrapped query.
QUERY_WRAPPER_PLACEHOLDERS = ("%sql%", "<%= sql %>")

# Legacy template names still stored in older infowindow/tooltip configs.
TEMPLATES_MAP = {
    "table/views/infowindow_light": "infowindow_light",
    "table/views/infowindow_dark": "infowindow_dark",
    "table/views/infowindow_light_header_blue": "infowindow_light_header_blue",
    "table/views/infowindow_light_header_yellow": "infowindow_light_header_yellow",
    "table/views/infowindow_light_header_orange": "infowindow_light_header_orange",
    "table/views/infowindow_light_header_green": "infowindow_light_header_green",
    "table/views/infowindow_header_with_image": "infowindow_header_with_image",
}


class Layer(Base):
    """Layer configuration. Owned by the user owning its map."""

    __tablename__ = "layers"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    kind = Column(TEXT, nullable=False)
    options = Column(JSONB, nullable=False, server_default=text("'{}'::jsonb"))
    infowindow = Column(JSONB, nullable=True)
    tooltip = Column(JSONB, nullable=True)

    # Classification

    @property
    def is_carto(self) -> bool:
        return self.kind == KIND_CARTO

    @property
    def is_torque(self) -> bool:
        return self.kind == KIND_TORQUE

    @property
    def is_tiled(self) -> bool:
        return self.kind == KIND_TILED

    @property
    def is_background(self) -> bool:
        return self.kind == KIND_BACKGROUND

    @property
    def is_gmapsbase(self) -> bool:
        return self.kind == KIND_GMAPSBASE

    @property
    def is_wms(self) -> bool:
        return self.kind == KIND_WMS

    @property
    def is_basemap(self) -> bool:
        return self.kind in BASEMAP_KINDS

    @property
    def is_base(self) -> bool:
        return self.kind in BASE_KINDS

    @property
    def is_data_layer(self) -> bool:
        """Data layers are the only ones whose table dependencies are tracked."""
        return not self.is_base

    @property
    def is_user_layer(self) -> bool:
        return self.kind in BASE_KINDS

    @property
    def is_named_map_layer(self) -> bool:
        return self.is_base or self.is_carto

    # Options

    @property
    def parsed_options(self) -> LayerOptions:
        return LayerOptions.parse(self.options)

    @cached_property
    def legend(self) -> Optional[Any]:
        """The ``legend`` option, read once per instance."""
        return self.parsed_options.legend

    @property
    def supports_labels_layer(self) -> bool:
        labels = self.parsed_options.labels
        return self.is_basemap and bool(labels and labels.get("url"))

    # SQL

    def qualified_table_name(self, schema_owner_user=None) -> str:
        table_name = self.parsed_options.table_name
        if table_name and "." in table_name:
            return table_name
        schema_prefix = (
            "" if schema_owner_user is None else f"{schema_owner_user.sql_safe_database_schema}."
        )
        return f"{schema_prefix}{safe_table_name_quoting(table_name or '')}"

    def default_query(self, user=None) -> str:
        """Return the query used to render the layer for ``user``.

        A layer on a table owned by someone else is read through an explicit
        schema unless the configured name already carries one.
        """
        options = self.parsed_options
        if options.query:
            return options.query

        username = None if user is None else user.username
        table_name = options.table_name
        user_name = options.user_name
        if table_name and "." not in table_name and user_name and username != user_name:
            return (
                f"SELECT * FROM {quote_identifier(user_name)}."
                f"{safe_table_name_quoting(table_name)}"
            )
        return f"SELECT * FROM {self.qualified_table_name()}"

    def wrapped_sql(self, user=None) -> str:
        sql = self.default_query(user)
        query_wrapper = self.parsed_options.query_wrapper
        if not (query_wrapper and self.is_torque):
            return sql
        for placeholder in QUERY_WRAPPER_PLACEHOLDERS:
            query_wrapper = query_wrapper.replace(placeholder, sql)
        return query_wrapper

    # Templates

    def infowindow_template_path(self) -> Optional[Path]:
        return _template_path(self.infowindow, "infowindow")

    def tooltip_template_path(self) -> Optional[Path]:
        return _template_path(self.tooltip, "tooltip")


def _template_path(config: Optional[dict], folder: str) -> Optional[Path]:
    if not config or not config.get("template_name"):
        return None
    template_name = TEMPLATES_MAP.get(config["template_name"], config["template_name"])
    return get_layer_templates_dir() / folder / f"{template_name}.jst.mustache"
