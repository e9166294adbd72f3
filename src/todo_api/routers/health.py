from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..repositories import DatabaseError, TodoStore
from ..schemas import HealthOut
from .todos import get_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


# PUBLIC_INTERFACE
@router.get("/health", response_model=HealthOut, summary="Health Check")
def health_check(store: TodoStore = Depends(get_store)) -> HealthOut:
    """
    Health check endpoint. Always answers 200; the database field reports
    whether a ping succeeded.
    """
    try:
        store.ping()
    except DatabaseError as exc:
        logger.warning("Health check ping failed: %s", exc)
        return HealthOut(status="degraded", database="disconnected")
    return HealthOut(status="healthy", database="connected")
