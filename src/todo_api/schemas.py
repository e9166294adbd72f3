from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

TITLE_REQUIRED = "Title is required"


def _normalize_title(value: Any) -> Any:
    """
    Internal helper shared by the input schemas.
    - None and missing titles are treated as empty.
    - Strings are stripped and must not end up empty.
    - Any other type is passed through so pydantic reports the type error.
    """
    if value is None:
        value = ""
    if isinstance(value, str):
        s = value.strip()
        if not s:
            raise ValueError(TITLE_REQUIRED)
        return s
    return value


# PUBLIC_INTERFACE
class TodoCreate(BaseModel):
    """
    Schema for creating a new Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk",
                "description": "Two litres, semi-skimmed",
                "completed": False,
            }
        }
    )

    title: str = Field(default="", validate_default=True, description="Short title for the todo item")
    description: str = Field(default="", validate_default=True, description="Optional detailed description")
    completed: bool = Field(default=False, description="Completion status flag")

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: Any) -> Any:
        """
        Strip whitespace and reject empty titles.
        """
        return _normalize_title(v)

    @field_validator("description", mode="before")
    @classmethod
    def default_description(cls, v: Any) -> Any:
        """
        A null description is stored as an empty string.
        """
        return "" if v is None else v


# PUBLIC_INTERFACE
class TodoUpdate(TodoCreate):
    """
    Schema for replacing the mutable fields of an existing Todo item.
    Omitted fields are reset to their defaults: description '' and completed false.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "Buy milk and bread",
                "description": "",
                "completed": True,
            }
        }
    )


# PUBLIC_INTERFACE
class TodoOut(BaseModel):
    """
    Schema returned by the API for a Todo item.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "id": 1,
                "title": "Buy milk",
                "description": "",
                "completed": False,
                "created_at": "2025-01-25T10:15:30.123000",
                "updated_at": "2025-01-25T10:15:30.123000",
            }
        }
    )

    id: int = Field(..., description="Unique identifier of the todo item")
    title: str = Field(..., description="Short title for the todo item")
    description: str = Field(default="", description="Detailed description, empty when none")
    completed: bool = Field(..., description="Completion status flag")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


# PUBLIC_INTERFACE
class HealthOut(BaseModel):
    """Schema returned by the health endpoint."""

    status: str = Field(..., description="'healthy' or 'degraded'")
    database: str = Field(..., description="'connected' or 'disconnected'")
