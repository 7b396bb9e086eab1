"""Services for Identity app: registration, login and profile lookup."""
import logging

from django.conf import settings
from django.contrib.auth import authenticate
from django.db import IntegrityError, transaction

from apps.core.errors import Conflict, InvalidInput, Unauthenticated
from .dtos import AuthResultDTO, UserDTO
from .jwt_auth import TokenIssuer
from .models import User, normalize_email_address

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_MESSAGE = "Invalid email or password"

NAME_MAX_LENGTH = User._meta.get_field('name').max_length
EMAIL_MAX_LENGTH = User._meta.get_field('email').max_length


def user_to_dto(user: User) -> UserDTO:
    return UserDTO(
        id=user.id,
        name=user.name,
        email=user.email,
        created_at=user.created_at,
    )


def register_user(
    token_issuer: TokenIssuer,
    *,
    name: str | None,
    email: str | None,
    password: str | None,
) -> AuthResultDTO:
    """
    Create an account and issue its first token.

    Raises:
        InvalidInput: missing name/email/password, a short password, or
            a name or email longer than the column allows.
        Conflict: an account with this email already exists.
    """
    name = (name or '').strip()
    email = normalize_email_address(email)
    password = password or ''

    if not name or not email or not password:
        raise InvalidInput("Name, email, and password are required")

    min_length = getattr(settings, 'PASSWORD_MIN_LENGTH', 8)
    if len(password) < min_length:
        raise InvalidInput(f"Password must be at least {min_length} characters long")

    if len(name) > NAME_MAX_LENGTH:
        raise InvalidInput(f"Name must be at most {NAME_MAX_LENGTH} characters")

    if len(email) > EMAIL_MAX_LENGTH:
        raise InvalidInput(f"Email must be at most {EMAIL_MAX_LENGTH} characters")

    if User.objects.filter(email=email).exists():
        raise Conflict("An account with this email already exists")

    try:
        with transaction.atomic():
            user = User.objects.create_user(email=email, password=password, name=name)
    except IntegrityError:
        # Lost a race with a concurrent registration for the same address
        raise Conflict("An account with this email already exists")

    logger.info(f"Registered user {user.id}")
    return AuthResultDTO(user=user_to_dto(user), token=token_issuer.issue(user.id))


def login_user(
    token_issuer: TokenIssuer,
    *,
    email: str | None,
    password: str | None,
) -> AuthResultDTO:
    """
    Verify credentials and issue a token.

    Unknown email and wrong password fail identically so the response
    does not reveal which accounts exist.
    """
    email = normalize_email_address(email)
    password = password or ''

    if not email or not password:
        raise InvalidInput("Email and password are required")

    user = authenticate(email=email, password=password)
    if user is None:
        logger.warning("Failed login attempt")
        raise Unauthenticated(INVALID_CREDENTIALS_MESSAGE)

    logger.info(f"User {user.id} logged in")
    return AuthResultDTO(user=user_to_dto(user), token=token_issuer.issue(user.id))
