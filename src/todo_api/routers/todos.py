from __future__ import annotations

import re
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..repositories import TodoStore
from ..schemas import TodoCreate, TodoOut, TodoUpdate

_ID_PATTERN = re.compile(r"[+-]?[0-9]+")
_ID_MIN = -(2**63)
_ID_MAX = 2**63 - 1

router = APIRouter(
    prefix="/todos",
    tags=["todos"],
)


# PUBLIC_INTERFACE
def get_store(request: Request) -> TodoStore:
    """
    Dependency returning the store injected into the application by create_app.
    """
    return request.app.state.store


def parse_todo_id(todo_id: str) -> int:
    """
    Parse the path id. Only an optionally signed run of ASCII digits that fits
    a signed 64-bit integer is accepted; anything else is a 400.
    """
    if not _ID_PATTERN.fullmatch(todo_id):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid id")
    value = int(todo_id)
    if not _ID_MIN <= value <= _ID_MAX:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid id")
    return value


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Todo not found")


# PUBLIC_INTERFACE
@router.get(
    "",
    response_model=List[TodoOut],
    summary="List Todos",
    description="List all todos, newest first.",
    responses={
        200: {"description": "List retrieved successfully"},
        500: {"description": "Database error"},
    },
)
def list_todos(store: TodoStore = Depends(get_store)) -> List[TodoOut]:
    """
    List every todo ordered by creation time, most recent first.
    """
    return [TodoOut(**it) for it in store.list()]  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.get(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Get Todo",
    description="Get a single Todo item by ID.",
    responses={
        200: {"description": "Todo found"},
        400: {"description": "Invalid id"},
        404: {"description": "Todo not found"},
    },
)
def get_todo(todo_id: int = Depends(parse_todo_id), store: TodoStore = Depends(get_store)) -> TodoOut:
    """
    Retrieve a single Todo item by its ID.
    """
    item = store.get(todo_id)
    if not item:
        raise _not_found()
    return TodoOut(**item)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.post(
    "",
    response_model=TodoOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create Todo",
    description="Create a new Todo item and return the created resource.",
    responses={
        201: {"description": "Todo created successfully"},
        400: {"description": "Malformed JSON or empty title"},
    },
)
def create_todo(payload: TodoCreate, store: TodoStore = Depends(get_store)) -> TodoOut:
    """
    Create a new Todo. The title has already been validated by the schema.
    """
    created = store.create(payload)
    return TodoOut(**created)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.put(
    "/{todo_id}",
    response_model=TodoOut,
    summary="Replace Todo",
    description=(
        "Replace the title, description and completion flag of an existing Todo item. "
        "updated_at is refreshed by the database."
    ),
    responses={
        200: {"description": "Todo updated"},
        400: {"description": "Invalid id or body"},
        404: {"description": "Todo not found"},
    },
)
def put_todo(
    payload: TodoUpdate,
    todo_id: int = Depends(parse_todo_id),
    store: TodoStore = Depends(get_store),
) -> TodoOut:
    """
    Full update (replace) of a Todo item.
    """
    updated = store.update(todo_id, payload)
    if not updated:
        raise _not_found()
    return TodoOut(**updated)  # type: ignore[arg-type]


# PUBLIC_INTERFACE
@router.delete(
    "/{todo_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete Todo",
    description="Delete a Todo item by ID.",
    responses={
        204: {"description": "Todo deleted"},
        400: {"description": "Invalid id"},
        404: {"description": "Todo not found"},
    },
)
def delete_todo(todo_id: int = Depends(parse_todo_id), store: TodoStore = Depends(get_store)) -> Response:
    """
    Delete a Todo. Returns 204 on success, 404 if not found.
    """
    if not store.delete(todo_id):
        raise _not_found()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
