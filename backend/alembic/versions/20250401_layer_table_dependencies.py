"""Create users, maps, layers, user tables and analysis graph tables."""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "20250401_layer_table_dependencies"
down_revision = None
branch_labels = None
depends_on = None


def _has_table(conn, table_name: str) -> bool:
    inspector = sa.inspect(conn)
    return inspector.has_table(table_name)


def _uuid_pk():
    return sa.Column(
        "id",
        postgresql.UUID(as_uuid=True),
        primary_key=True,
        server_default=sa.text("gen_random_uuid()"),
    )


def _uuid_fk(name: str, target: str, **kwargs):
    return sa.Column(
        name,
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey(target, ondelete="CASCADE"),
        **kwargs,
    )


def upgrade():
    conn = op.get_bind()
    if not _has_table(conn, "users"):
        op.create_table(
            "users",
            _uuid_pk(),
            sa.Column("username", sa.TEXT(), nullable=False, unique=True),
            sa.Column("email", sa.TEXT(), nullable=False, unique=True),
            sa.Column("display_name", sa.TEXT(), nullable=True),
            sa.Column("database_schema", sa.TEXT(), nullable=True),
            sa.Column(
                "created_at",
                sa.TIMESTAMP(timezone=True),
                nullable=False,
                server_default=sa.text("now()"),
            ),
        )

    if not _has_table(conn, "maps"):
        op.create_table(
            "maps",
            _uuid_pk(),
            _uuid_fk("owner_id", "users.id", nullable=True),
            sa.Column("name", sa.TEXT(), nullable=False),
            sa.Column("description", sa.TEXT(), nullable=True),
        )

    if not _has_table(conn, "visualizations"):
        op.create_table(
            "visualizations",
            _uuid_pk(),
            _uuid_fk("map_id", "maps.id", nullable=False, unique=True),
            sa.Column("name", sa.TEXT(), nullable=False),
        )

    if not _has_table(conn, "layers"):
        op.create_table(
            "layers",
            _uuid_pk(),
            sa.Column("kind", sa.TEXT(), nullable=False),
            sa.Column(
                "options",
                postgresql.JSONB(),
                nullable=False,
                server_default=sa.text("'{}'::jsonb"),
            ),
            sa.Column("infowindow", postgresql.JSONB(), nullable=True),
            sa.Column("tooltip", postgresql.JSONB(), nullable=True),
        )

    if not _has_table(conn, "map_layers"):
        op.create_table(
            "map_layers",
            _uuid_fk("map_id", "maps.id", primary_key=True),
            _uuid_fk("layer_id", "layers.id", primary_key=True),
            sa.Column("z_index", sa.INTEGER(), nullable=False, server_default=sa.text("0")),
            sa.Column("visible", sa.BOOLEAN(), nullable=False, server_default=sa.text("true")),
        )

    if not _has_table(conn, "user_tables"):
        op.create_table(
            "user_tables",
            _uuid_pk(),
            _uuid_fk("user_id", "users.id", nullable=False),
            sa.Column("name", sa.TEXT(), nullable=False),
            sa.Column(
                "privacy", sa.TEXT(), nullable=False, server_default=sa.text("'private'")
            ),
            sa.UniqueConstraint("user_id", "name", name="uq_user_tables_user_name"),
        )

    if not _has_table(conn, "layers_user_tables"):
        op.create_table(
            "layers_user_tables",
            _uuid_fk("layer_id", "layers.id", primary_key=True),
            _uuid_fk("user_table_id", "user_tables.id", primary_key=True),
        )

    if not _has_table(conn, "analysis_nodes"):
        op.create_table(
            "analysis_nodes",
            _uuid_pk(),
            _uuid_fk("visualization_id", "visualizations.id", nullable=False),
            sa.Column("natural_id", sa.TEXT(), nullable=False),
            sa.Column("type", sa.TEXT(), nullable=False),
            sa.Column("params", postgresql.JSONB(), nullable=True),
            sa.Column("options", postgresql.JSONB(), nullable=True),
            sa.UniqueConstraint(
                "visualization_id",
                "natural_id",
                name="uq_analysis_nodes_visualization_natural_id",
            ),
        )

    if not _has_table(conn, "analysis_node_sources"):
        op.create_table(
            "analysis_node_sources",
            _uuid_fk("node_id", "analysis_nodes.id", primary_key=True),
            _uuid_fk("source_node_id", "analysis_nodes.id", primary_key=True),
        )


def downgrade():
    conn = op.get_bind()
    for table_name in (
        "analysis_node_sources",
        "analysis_nodes",
        "layers_user_tables",
        "user_tables",
        "map_layers",
        "layers",
        "visualizations",
        "maps",
        "users",
    ):
        if _has_table(conn, table_name):
            op.drop_table(table_name)
