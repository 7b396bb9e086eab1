"""API Schemas for Tasks app - request/response validation."""
from datetime import datetime
from typing import Any, List, Optional
from uuid import UUID

from ninja import Field, Schema
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


# =============================================================================
# Request Schemas
# =============================================================================

class TaskCreateIn(Schema):
    """
    Schema for creating a task. Any ``status`` sent by the client is not
    declared here and is therefore dropped: new tasks always start Pending.
    """
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    # Unparseable dates become null instead of failing validation
    due_date: Any = Field(None, alias='dueDate')


class TaskUpdateIn(Schema):
    """Schema for partial updates. Only fields present in the body apply."""
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Optional[str] = None
    due_date: Any = Field(None, alias='dueDate')


class TaskFilterIn(Schema):
    """
    Query parameters for listing tasks. Kept as raw strings: invalid
    values are ignored or defaulted by the query builder, never rejected.
    """
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    sort: Optional[str] = None
    page: Optional[str] = None
    limit: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================

class TaskOut(Schema):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    owner: UUID
    title: str
    description: str
    status: str
    priority: str
    due_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class PaginationOut(Schema):
    page: int
    limit: int
    total: int
    pages: int


class TaskData(Schema):
    task: TaskOut


class TaskEnvelope(Schema):
    success: bool
    message: str
    data: TaskData


class TaskListData(Schema):
    tasks: List[TaskOut]
    pagination: PaginationOut


class TaskListEnvelope(Schema):
    success: bool
    message: str
    data: TaskListData


class MessageEnvelope(Schema):
    success: bool
    message: str
