"""ORM models for analysis graph nodes and their source edges."""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import JSONB, TEXT, UUID

from db.base import Base


class AnalysisNodeRecord(Base):
    """One node of a visualization's analysis graph."""

    __tablename__ = "analysis_nodes"
    __table_args__ = (
        UniqueConstraint(
            "visualization_id", "natural_id", name="uq_analysis_nodes_visualization_natural_id"
        ),
    )

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    visualization_id = Column(
        UUID(as_uuid=True),
        ForeignKey("visualizations.id", ondelete="CASCADE"),
        nullable=False,
    )
    natural_id = Column(TEXT, nullable=False)
    type = Column(TEXT, nullable=False)
    params = Column(JSONB, nullable=True)
    options = Column(JSONB, nullable=True)


class AnalysisNodeSource(Base):
    """Directed edge: ``source_node_id`` feeds ``node_id``."""

    __tablename__ = "analysis_node_sources"

    node_id = Column(
        UUID(as_uuid=True),
        ForeignKey("analysis_nodes.id", ondelete="CASCADE"),
        primary_key=True,
    )
    source_node_id = Column(
        UUID(as_uuid=True),
        ForeignKey("analysis_nodes.id", ondelete="CASCADE"),
        primary_key=True,
    )
