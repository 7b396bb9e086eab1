"""API Schemas for Identity app."""
from datetime import datetime
from typing import Optional
from uuid import UUID

from ninja import Schema
from pydantic import ConfigDict
from pydantic.alias_generators import to_camel


# =============================================================================
# Request Schemas
# =============================================================================

# Fields are optional here so missing values reach the service layer and
# come back as a 400 with a readable message.

class RegisterIn(Schema):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(Schema):
    email: Optional[str] = None
    password: Optional[str] = None


# =============================================================================
# Response Schemas
# =============================================================================

class UserOut(Schema):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: UUID
    name: str
    email: str
    created_at: datetime


class AuthData(Schema):
    user: UserOut
    token: str


class AuthEnvelope(Schema):
    success: bool
    message: str
    data: AuthData


class UserData(Schema):
    user: UserOut


class UserEnvelope(Schema):
    success: bool
    message: str
    data: UserData
