"""Pydantic models for user tables."""

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, field_validator

Privacy = Literal["private", "link", "public"]


class UserTableCreate(BaseModel):
    """Payload for registering a table of the current user."""

    name: str
    privacy: Privacy = "private"

    model_config = ConfigDict(extra="forbid")

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Table name must not be blank")
        return value


class UserTableRead(BaseModel):
    """Response model for a user table."""

    id: UUID
    user_id: UUID
    name: str
    privacy: Privacy

    model_config = ConfigDict(from_attributes=True)
