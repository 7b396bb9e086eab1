from django.contrib.auth.models import AnonymousUser
from django.utils.deprecation import MiddlewareMixin

from .jwt_auth import TokenError, extract_bearer_token, get_token_issuer
from .models import User


class BearerTokenMiddleware(MiddlewareMixin):
    """
    Resolves the requesting user from an ``Authorization: Bearer`` token.

    On success the live User is attached as ``request.user``. A missing or
    malformed header, a token that fails verification, or a token whose
    user no longer exists all leave ``request.user`` anonymous; protected
    endpoints then reject the request with a uniform 401.
    """

    def __init__(self, get_response=None):
        super().__init__(get_response)
        self.token_issuer = get_token_issuer()

    def process_request(self, request):
        request.user = self.resolve_user(request.headers.get('Authorization'))

    def resolve_user(self, authorization):
        token = extract_bearer_token(authorization)
        if token is None:
            return AnonymousUser()

        try:
            user_id = self.token_issuer.verify(token)
        except TokenError:
            return AnonymousUser()

        try:
            return User.objects.get(id=user_id)
        except User.DoesNotExist:
            return AnonymousUser()
