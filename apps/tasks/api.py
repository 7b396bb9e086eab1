"""
API Router for Tasks app.

All endpoints require a bearer token and operate only on the
authenticated user's tasks.
"""
from dataclasses import asdict

from django.http import HttpRequest
from ninja import Query, Router

from apps.core.responses import envelope
from apps.identity.api import require_auth

from .schemas import (
    MessageEnvelope, TaskCreateIn, TaskEnvelope, TaskFilterIn,
    TaskListEnvelope, TaskUpdateIn,
)
from . import services

router = Router(tags=["Tasks"])


@router.post("", response={201: TaskEnvelope}, by_alias=True, auth=None)
def create_task(request: HttpRequest, payload: TaskCreateIn):
    """
    Create a task owned by the current user. New tasks start Pending.
    """
    user = require_auth(request)
    task = services.create_task(user.id, payload.model_dump())
    return 201, envelope({"task": asdict(task)}, message="Task created successfully")


@router.get("", response=TaskListEnvelope, by_alias=True, auth=None)
def list_tasks(request: HttpRequest, filters: Query[TaskFilterIn]):
    """
    List the current user's tasks.

    Query params:
    - status: Pending | Completed
    - priority: Low | Medium | High
    - search: case-insensitive substring of title or description
    - sort: newest (default) | oldest | dueSoon | priority
    - page: page number, from 1
    - limit: page size, 1-100 (default 50)

    Unrecognized filter values are ignored rather than rejected.
    """
    user = require_auth(request)
    query = services.TaskQuery.from_params(**filters.model_dump())
    result = services.list_tasks(user.id, query)
    return envelope(asdict(result))


@router.put("/{task_id}", response=TaskEnvelope, by_alias=True, auth=None)
def update_task(request: HttpRequest, task_id: str, payload: TaskUpdateIn):
    """
    Update any subset of title, description, status, priority, dueDate.
    Tasks owned by other users are reported as not found.
    """
    user = require_auth(request)
    task = services.update_task(user.id, task_id, payload.model_dump(exclude_unset=True))
    return envelope({"task": asdict(task)}, message="Task updated successfully")


@router.delete("/{task_id}", response=MessageEnvelope, auth=None)
def delete_task(request: HttpRequest, task_id: str):
    """Delete a task owned by the current user."""
    user = require_auth(request)
    services.delete_task(user.id, task_id)
    return envelope(message="Task deleted successfully")
