"""DTOs for Tasks app."""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from uuid import UUID


@dataclass(frozen=True)
class TaskDTO:
    id: UUID
    owner: UUID
    title: str
    description: str
    status: str
    priority: str
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class PaginationDTO:
    page: int
    limit: int
    total: int
    pages: int


@dataclass(frozen=True)
class TaskPageDTO:
    """One page of a task listing plus the counts for the whole match set."""
    tasks: List[TaskDTO]
    pagination: PaginationDTO
