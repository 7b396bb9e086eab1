"""
JWT Authentication utilities.

Issues and verifies the stateless bearer tokens that identify a user.
A token carries the user id (``sub``) and an expiry (``exp``); validity
is decided purely by signature and expiry at request time. There is no
revocation list, so a token stays valid until it expires even if the
account changes in the meantime.
"""
from datetime import datetime, timezone
from uuid import UUID

import jwt

from apps.core.context import AppContext, get_app_context


class TokenError(Exception):
    """Base class for token verification failures."""


class InvalidToken(TokenError):
    """Signature mismatch or otherwise unacceptable claims."""


class ExpiredToken(TokenError):
    """The token's ``exp`` claim has passed."""


class MalformedToken(TokenError):
    """Input is not a structurally valid token."""


class TokenIssuer:
    """
    Signs and verifies identity tokens using the secret, algorithm and
    lifetime of the given AppContext.
    """

    def __init__(self, context: AppContext):
        self.context = context

    def issue(self, user_id: UUID) -> str:
        """
        Create a signed token for ``user_id`` that expires after the
        context's token lifetime.
        """
        now = datetime.now(timezone.utc)
        payload = {
            'sub': str(user_id),
            'iat': now,
            'exp': now + self.context.token_lifetime,
        }
        return jwt.encode(payload, self.context.jwt_secret, algorithm=self.context.jwt_algorithm)

    def verify(self, token: str) -> UUID:
        """
        Decode and validate a token, returning the embedded user id.

        Raises:
            MalformedToken: not a JWT, or missing/invalid ``sub``/``exp``.
            ExpiredToken: past its expiry.
            InvalidToken: bad signature or any other rejected claim.
        """
        if not token or not isinstance(token, str):
            raise MalformedToken("Token is empty")

        try:
            payload = jwt.decode(
                token,
                self.context.jwt_secret,
                algorithms=[self.context.jwt_algorithm],
                options={'require': ['sub', 'exp']},
            )
        except jwt.ExpiredSignatureError as e:
            raise ExpiredToken("Token has expired") from e
        except jwt.InvalidSignatureError as e:
            raise InvalidToken("Token signature is invalid") from e
        except (jwt.DecodeError, jwt.MissingRequiredClaimError, jwt.exceptions.InvalidSubjectError) as e:
            raise MalformedToken("Token is malformed") from e
        except jwt.InvalidTokenError as e:
            raise InvalidToken("Token is invalid") from e

        try:
            return UUID(str(payload['sub']))
        except ValueError as e:
            raise MalformedToken("Token subject is not a user id") from e


def get_token_issuer() -> TokenIssuer:
    """Token issuer bound to the process-wide AppContext."""
    return TokenIssuer(get_app_context())


def extract_bearer_token(authorization: str | None) -> str | None:
    """
    Return the token from an ``Authorization: Bearer <token>`` header
    value, or None when the header is absent or not a bearer credential.
    """
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != 'bearer':
        return None
    return parts[1]
