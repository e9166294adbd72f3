from __future__ import annotations

from datetime import datetime
from typing import TypedDict


# PUBLIC_INTERFACE
class TodoEntity(TypedDict):
    """
    A lightweight record representing a row of the todos table as returned by
    the stores.

    Fields:
    - id: Database-assigned integer identifier
    - title: Non-empty title
    - description: Description text ('' when none was given)
    - completed: Boolean completion flag
    - created_at: Server-assigned creation timestamp
    - updated_at: Server-assigned timestamp, refreshed on every update
    """

    id: int
    title: str
    description: str
    completed: bool
    created_at: datetime
    updated_at: datetime
