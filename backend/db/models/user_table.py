"""ORM models for user tables and the layer dependency association."""

from sqlalchemy import Column, ForeignKey, UniqueConstraint, text
from sqlalchemy.dialects.postgresql import TEXT, UUID

from db.base import Base

PRIVACY_PRIVATE = "private"
PRIVACY_LINK = "link"
PRIVACY_PUBLIC = "public"
PRIVACY_VALUES = (PRIVACY_PRIVATE, PRIVACY_LINK, PRIVACY_PUBLIC)


class UserTable(Base):
    """A physical table in a user's schema known to the system."""

    __tablename__ = "user_tables"
    __table_args__ = (UniqueConstraint("user_id", "name", name="uq_user_tables_user_name"),)

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    user_id = Column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name = Column(TEXT, nullable=False)
    privacy = Column(TEXT, nullable=False, server_default=text("'private'"))

    @property
    def is_private(self) -> bool:
        # Unset privacy counts as private until the row is flushed.
        return (self.privacy or PRIVACY_PRIVATE) == PRIVACY_PRIVATE

    def readable_by(self, user) -> bool:
        """Return True if ``user`` may read this table's data."""
        if user is None:
            return not self.is_private
        return self.user_id == user.id or not self.is_private


class LayerUserTable(Base):
    """Tables a data layer reads from, as of its last save."""

    __tablename__ = "layers_user_tables"

    layer_id = Column(
        UUID(as_uuid=True),
        ForeignKey("layers.id", ondelete="CASCADE"),
        primary_key=True,
    )
    user_table_id = Column(
        UUID(as_uuid=True),
        ForeignKey("user_tables.id", ondelete="CASCADE"),
        primary_key=True,
    )
