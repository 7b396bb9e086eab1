"""DTOs for Identity app."""
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class UserDTO:
    """Public view of a user. Never carries the password hash."""
    id: UUID
    name: str
    email: str
    created_at: datetime


@dataclass(frozen=True)
class AuthResultDTO:
    user: UserDTO
    token: str
