"""
Task services: owner-scoped listing and mutations.

Every function takes the requesting user's id and scopes all data access
to that user's tasks before anything else is applied. Nothing in this
module can read or modify a task owned by someone else.
"""
import logging
import math
from dataclasses import dataclass
from datetime import date, datetime, time, timezone as dt_timezone
from typing import Any, Optional
from uuid import UUID

from django.db.models import Case, IntegerField, Q, QuerySet, Value, When
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from apps.core.db import UnicodeLower
from apps.core.errors import InvalidInput, NotFound
from .dtos import PaginationDTO, TaskDTO, TaskPageDTO
from .models import Task, TaskPriority, TaskStatus

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
MAX_LIMIT = 100

SORT_NEWEST = 'newest'
SORT_OLDEST = 'oldest'
SORT_DUE_SOON = 'dueSoon'
SORT_PRIORITY = 'priority'
SORT_OPTIONS = (SORT_NEWEST, SORT_OLDEST, SORT_DUE_SOON, SORT_PRIORITY)

PRIORITY_RANK = {
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 2,
    TaskPriority.LOW: 1,
}

NOT_FOUND_MESSAGE = "Task not found"

TITLE_MAX_LENGTH = Task._meta.get_field('title').max_length


# =============================================================================
# Helpers
# =============================================================================

def _task_to_dto(task: Task) -> TaskDTO:
    return TaskDTO(
        id=task.id,
        owner=task.owner_id,
        title=task.title,
        description=task.description,
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        created_at=task.created_at,
        updated_at=task.updated_at,
    )


def _parse_int(value: Any, default: int) -> int:
    if value is None or isinstance(value, bool):
        return default
    try:
        return int(str(value).strip())
    except ValueError:
        return default


def parse_due_date(value: Any) -> Optional[datetime]:
    """
    Parse a due date from an ISO date or datetime.

    Anything that cannot be parsed yields None rather than an error, so a
    bad date is stored as "no due date". Naive values are taken as UTC.
    """
    if value is None:
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = parse_datetime(text)
            if parsed is None:
                day = parse_date(text)
                parsed = datetime.combine(day, time.min) if day else None
        except ValueError:
            # Well formed but impossible, e.g. 2024-02-30
            return None
        if parsed is None:
            return None
    else:
        return None

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def _clean_text(value: Any, field: str, max_length: Optional[int] = None) -> str:
    text = value.strip() if isinstance(value, str) else ''
    if not text:
        raise InvalidInput(f"{field} is required")
    if max_length is not None and len(text) > max_length:
        raise InvalidInput(f"{field} must be at most {max_length} characters")
    return text


def _validate_priority(value: Any) -> str:
    if value not in TaskPriority.values:
        raise InvalidInput(f"Priority must be one of: {', '.join(TaskPriority.values)}")
    return value


def _validate_status(value: Any) -> str:
    if value not in TaskStatus.values:
        raise InvalidInput(f"Status must be one of: {', '.join(TaskStatus.values)}")
    return value


def _get_owned_task(owner_id: UUID, task_id) -> Task:
    """
    Load a task by (id, owner). A malformed id, a missing task and a task
    owned by someone else all raise the same NotFound.
    """
    try:
        task_uuid = UUID(str(task_id))
    except ValueError:
        raise NotFound(NOT_FOUND_MESSAGE)

    try:
        return Task.objects.get(id=task_uuid, owner_id=owner_id)
    except Task.DoesNotExist:
        raise NotFound(NOT_FOUND_MESSAGE)


# =============================================================================
# Query Builder
# =============================================================================

@dataclass(frozen=True)
class TaskQuery:
    """
    Normalized listing parameters.

    Build with ``TaskQuery.from_params`` which never fails: unknown status
    or priority values become None (no filter), an unknown sort becomes
    ``newest``, ``page`` is floored at 1 and ``limit`` clamped to
    [1, MAX_LIMIT].
    """
    status: Optional[str] = None
    priority: Optional[str] = None
    search: Optional[str] = None
    sort: str = SORT_NEWEST
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(
        cls,
        status: Any = None,
        priority: Any = None,
        search: Any = None,
        sort: Any = None,
        page: Any = None,
        limit: Any = None,
    ) -> 'TaskQuery':
        search_text = search.strip() if isinstance(search, str) else ''
        return cls(
            status=status if status in TaskStatus.values else None,
            priority=priority if priority in TaskPriority.values else None,
            search=search_text or None,
            sort=sort if sort in SORT_OPTIONS else SORT_NEWEST,
            page=max(1, _parse_int(page, DEFAULT_PAGE)),
            limit=min(MAX_LIMIT, max(1, _parse_int(limit, DEFAULT_LIMIT))),
        )

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


def _apply_sort(queryset: QuerySet, sort: str) -> QuerySet:
    if sort == SORT_OLDEST:
        return queryset.order_by('created_at')
    if sort == SORT_DUE_SOON:
        # Tasks without a due date follow the backend's null ordering
        # (first on SQLite, last on PostgreSQL).
        return queryset.order_by('due_date', '-created_at')
    if sort == SORT_PRIORITY:
        return queryset.annotate(
            priority_rank=Case(
                *[When(priority=value, then=Value(rank)) for value, rank in PRIORITY_RANK.items()],
                default=Value(1),
                output_field=IntegerField(),
            )
        ).order_by('-priority_rank', '-created_at')
    return queryset.order_by('-created_at')


def build_task_queryset(owner_id: UUID, query: TaskQuery) -> QuerySet:
    """
    Translate a TaskQuery into a filtered, ordered queryset of the owner's
    tasks (without the pagination window).
    """
    # Owner scope first; every other filter narrows within it
    queryset = Task.objects.filter(owner_id=owner_id)

    if query.status:
        queryset = queryset.filter(status=query.status)

    if query.priority:
        queryset = queryset.filter(priority=query.priority)

    # Both sides are lowered with Unicode rules; contains escapes the LIKE
    # wildcards, so the term matches literally
    if query.search:
        term = query.search.lower()
        queryset = queryset.annotate(
            title_lower=UnicodeLower('title'),
            description_lower=UnicodeLower('description'),
        ).filter(
            Q(title_lower__contains=term) | Q(description_lower__contains=term)
        )

    return _apply_sort(queryset, query.sort)


def list_tasks(owner_id: UUID, query: TaskQuery) -> TaskPageDTO:
    """
    Return one page of the owner's tasks plus the total match count and
    page count. ``pages`` is at least 1 even when nothing matches.
    """
    queryset = build_task_queryset(owner_id, query)

    total = queryset.count()
    # A page past the end never reaches the database, so huge page
    # numbers cannot overflow the OFFSET
    if query.skip >= total:
        window = []
    else:
        window = queryset[query.skip:query.skip + query.limit]
    pages = max(1, math.ceil(total / query.limit))

    return TaskPageDTO(
        tasks=[_task_to_dto(t) for t in window],
        pagination=PaginationDTO(
            page=query.page,
            limit=query.limit,
            total=total,
            pages=pages,
        ),
    )


# =============================================================================
# Mutations
# =============================================================================

def create_task(owner_id: UUID, data: dict) -> TaskDTO:
    """
    Create a task for ``owner_id``.

    Title and description are required and stored trimmed. Priority
    defaults to Medium. Status always starts as Pending whatever the
    payload says.
    """
    title = _clean_text(data.get('title'), "Title", TITLE_MAX_LENGTH)
    description = _clean_text(data.get('description'), "Description")

    priority = data.get('priority')
    priority = TaskPriority.MEDIUM if priority is None else _validate_priority(priority)

    task = Task.objects.create(
        owner_id=owner_id,
        title=title,
        description=description,
        status=TaskStatus.PENDING,
        priority=priority,
        due_date=parse_due_date(data.get('due_date')),
    )
    logger.info(f"User {owner_id} created task {task.id}")
    return _task_to_dto(task)


def update_task(owner_id: UUID, task_id, data: dict) -> TaskDTO:
    """
    Apply a partial update. Only keys present in ``data`` are touched;
    an explicit null ``due_date`` clears the due date.
    """
    task = _get_owned_task(owner_id, task_id)

    if 'title' in data:
        task.title = _clean_text(data['title'], "Title", TITLE_MAX_LENGTH)
    if 'description' in data:
        task.description = _clean_text(data['description'], "Description")
    if 'status' in data:
        task.status = _validate_status(data['status'])
    if 'priority' in data:
        task.priority = _validate_priority(data['priority'])
    if 'due_date' in data:
        task.due_date = parse_due_date(data['due_date'])

    task.save()
    logger.info(f"User {owner_id} updated task {task.id}")
    return _task_to_dto(task)


def delete_task(owner_id: UUID, task_id) -> None:
    task = _get_owned_task(owner_id, task_id)
    task.delete()
    logger.info(f"User {owner_id} deleted task {task_id}")
