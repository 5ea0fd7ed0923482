"""ORM model for the visualizations table."""

from sqlalchemy import Column, ForeignKey, text
from sqlalchemy.dialects.postgresql import TEXT, UUID

from db.base import Base


class Visualization(Base):
    """Visualization wrapping a map; scopes analysis node ids."""

    __tablename__ = "visualizations"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    map_id = Column(
        UUID(as_uuid=True),
        ForeignKey("maps.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    name = Column(TEXT, nullable=False)
