"""ORM model for the users table."""

from sqlalchemy import Column, text
from sqlalchemy.dialects.postgresql import UUID, TEXT, TIMESTAMP

from db.base import Base


class User(Base):
    """User account information."""

    __tablename__ = "users"

    id = Column(
        UUID(as_uuid=True),
        primary_key=True,
        server_default=text("gen_random_uuid()"),
    )
    username = Column(TEXT, nullable=False, unique=True)
    email = Column(TEXT, nullable=False, unique=True)
    display_name = Column(TEXT, nullable=True)
    # Schema holding the user's tables; the username when unset.
    database_schema = Column(TEXT, nullable=True)
    created_at = Column(
        TIMESTAMP(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )

    @property
    def schema_name(self) -> str:
        return self.database_schema or self.username

    @property
    def sql_safe_database_schema(self) -> str:
        """Double-quoted schema name, safe to embed in SQL."""
        escaped = self.schema_name.replace('"', '""')
        return f'"{escaped}"'
