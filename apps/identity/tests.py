import json
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
from jwt.api_jws import PyJWS
from django.test import Client, TestCase, SimpleTestCase

from apps.core.context import AppContext, parse_lifetime
from .jwt_auth import (
    ExpiredToken, InvalidToken, MalformedToken, TokenIssuer,
    extract_bearer_token, get_token_issuer,
)
from .models import User


def make_issuer(**overrides) -> TokenIssuer:
    context = AppContext(jwt_secret=overrides.pop('secret', 'test-secret'), **overrides)
    return TokenIssuer(context)


class TokenIssuerTest(SimpleTestCase):
    """Token issue/verify contract."""

    def test_issue_then_verify_returns_user_id(self):
        issuer = make_issuer()
        user_id = uuid4()
        self.assertEqual(issuer.verify(issuer.issue(user_id)), user_id)

    def test_default_lifetime_is_seven_days(self):
        issuer = make_issuer()
        token = issuer.issue(uuid4())
        payload = jwt.decode(token, 'test-secret', algorithms=['HS256'])
        self.assertEqual(payload['exp'] - payload['iat'], 7 * 24 * 60 * 60)

    def test_expired_token(self):
        issuer = make_issuer()
        past = datetime.now(timezone.utc) - timedelta(hours=1)
        token = jwt.encode(
            {'sub': str(uuid4()), 'iat': past - timedelta(days=1), 'exp': past},
            'test-secret',
            algorithm='HS256',
        )
        with self.assertRaises(ExpiredToken):
            issuer.verify(token)

    def test_wrong_signature_is_invalid(self):
        token = make_issuer(secret='other-secret').issue(uuid4())
        with self.assertRaises(InvalidToken):
            make_issuer().verify(token)

    def test_garbage_is_malformed(self):
        issuer = make_issuer()
        for token in ['', 'not-a-token', 'a.b.c']:
            with self.assertRaises(MalformedToken):
                issuer.verify(token)

    def test_missing_subject_is_malformed(self):
        token = jwt.encode(
            {'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
            'test-secret',
            algorithm='HS256',
        )
        with self.assertRaises(MalformedToken):
            make_issuer().verify(token)

    def test_non_uuid_subject_is_malformed(self):
        token = jwt.encode(
            {'sub': 'not-a-uuid', 'exp': datetime.now(timezone.utc) + timedelta(hours=1)},
            'test-secret',
            algorithm='HS256',
        )
        with self.assertRaises(MalformedToken):
            make_issuer().verify(token)

    def test_non_string_subject_is_malformed(self):
        # Current PyJWT refuses to encode a non-string sub, so sign the raw payload
        expires = int((datetime.now(timezone.utc) + timedelta(hours=1)).timestamp())
        token = PyJWS().encode(
            json.dumps({'sub': 123, 'exp': expires}).encode(),
            'test-secret',
            algorithm='HS256',
        )
        with self.assertRaises(MalformedToken):
            make_issuer().verify(token)

    def test_extract_bearer_token(self):
        self.assertEqual(extract_bearer_token('Bearer abc'), 'abc')
        self.assertEqual(extract_bearer_token('bearer abc'), 'abc')
        self.assertIsNone(extract_bearer_token(None))
        self.assertIsNone(extract_bearer_token('Basic abc'))
        self.assertIsNone(extract_bearer_token('Bearer'))
        self.assertIsNone(extract_bearer_token('Bearer a b'))


class LifetimeParsingTest(SimpleTestCase):

    def test_units(self):
        self.assertEqual(parse_lifetime('7d'), timedelta(days=7))
        self.assertEqual(parse_lifetime('12h'), timedelta(hours=12))
        self.assertEqual(parse_lifetime('30m'), timedelta(minutes=30))
        self.assertEqual(parse_lifetime('45s'), timedelta(seconds=45))
        self.assertEqual(parse_lifetime('3600'), timedelta(hours=1))
        self.assertEqual(parse_lifetime(60), timedelta(minutes=1))

    def test_rejects_nonsense(self):
        for value in ['', 'soon', '-1d', '0']:
            with self.assertRaises(ValueError):
                parse_lifetime(value)


class AuthAPITest(TestCase):
    """Registration, login and the auth gate through the HTTP API."""

    def setUp(self):
        self.client = Client()

    def post_json(self, path, payload, **extra):
        return self.client.post(path, data=json.dumps(payload), content_type='application/json', **extra)

    def register(self, email='a@x.com', password='password1', name='Alice'):
        return self.post_json('/api/v1/auth/register', {'name': name, 'email': email, 'password': password})

    def test_register_returns_user_and_token(self):
        response = self.register()
        self.assertEqual(response.status_code, 201)

        body = response.json()
        self.assertTrue(body['success'])
        user = body['data']['user']
        self.assertEqual(user['email'], 'a@x.com')
        self.assertEqual(user['name'], 'Alice')
        self.assertIn('createdAt', user)
        self.assertNotIn('password', user)
        self.assertEqual(get_token_issuer().verify(body['data']['token']), User.objects.get().id)

    def test_register_normalizes_email(self):
        response = self.register(email='  Mixed@Example.COM ')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['user']['email'], 'mixed@example.com')

    def test_register_duplicate_email_conflicts(self):
        self.register(email='a@x.com')
        response = self.register(email='A@X.com')
        self.assertEqual(response.status_code, 409)
        self.assertFalse(response.json()['success'])
        self.assertEqual(User.objects.count(), 1)

    def test_register_requires_fields(self):
        response = self.post_json('/api/v1/auth/register', {'email': 'a@x.com', 'password': 'password1'})
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_register_short_password(self):
        response = self.register(password='short')
        self.assertEqual(response.status_code, 400)
        self.assertIn('8 characters', response.json()['message'])

    def test_register_rejects_overlong_name_and_email(self):
        response = self.register(name='n' * 151)
        self.assertEqual(response.status_code, 400)
        self.assertIn('150', response.json()['message'])

        response = self.register(email=('e' * 250) + '@x.com')
        self.assertEqual(response.status_code, 400)
        self.assertIn('254', response.json()['message'])

        self.assertEqual(User.objects.count(), 0)
        self.assertEqual(self.register(name='n' * 150).status_code, 201)

    def test_password_is_hashed(self):
        self.register()
        user = User.objects.get()
        self.assertNotEqual(user.password, 'password1')
        self.assertTrue(user.check_password('password1'))

    def test_login_returns_same_user(self):
        registered = self.register().json()['data']['user']
        response = self.post_json('/api/v1/auth/login', {'email': 'A@x.com', 'password': 'password1'})
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['user']['id'], registered['id'])

    def test_login_wrong_password_and_unknown_email_look_alike(self):
        self.register()
        wrong_password = self.post_json('/api/v1/auth/login', {'email': 'a@x.com', 'password': 'nope-nope'})
        unknown_email = self.post_json('/api/v1/auth/login', {'email': 'b@x.com', 'password': 'password1'})
        self.assertEqual(wrong_password.status_code, 401)
        self.assertEqual(unknown_email.status_code, 401)
        self.assertEqual(wrong_password.json(), unknown_email.json())

    def test_login_requires_fields(self):
        response = self.post_json('/api/v1/auth/login', {'email': 'a@x.com'})
        self.assertEqual(response.status_code, 400)

    def test_me_with_token(self):
        token = self.register().json()['data']['token']
        response = self.client.get('/api/v1/auth/me', HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['data']['user']['email'], 'a@x.com')

    def test_me_rejects_missing_and_bad_credentials(self):
        token = self.register().json()['data']['token']
        bad_headers = [
            {},
            {'HTTP_AUTHORIZATION': token},
            {'HTTP_AUTHORIZATION': f'Basic {token}'},
            {'HTTP_AUTHORIZATION': 'Bearer garbage'},
            {'HTTP_AUTHORIZATION': f'Bearer {make_issuer(secret="forged").issue(uuid4())}'},
        ]
        for headers in bad_headers:
            response = self.client.get('/api/v1/auth/me', **headers)
            self.assertEqual(response.status_code, 401)
            self.assertFalse(response.json()['success'])

    def test_token_for_deleted_user_is_rejected(self):
        token = self.register().json()['data']['token']
        User.objects.all().delete()
        response = self.client.get('/api/v1/auth/me', HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(response.status_code, 401)

    def test_expired_token_is_rejected(self):
        self.register()
        user = User.objects.get()
        past = datetime.now(timezone.utc) - timedelta(minutes=5)
        context = get_token_issuer().context
        token = jwt.encode(
            {'sub': str(user.id), 'iat': past - timedelta(days=1), 'exp': past},
            context.jwt_secret,
            algorithm=context.jwt_algorithm,
        )
        response = self.client.get('/api/v1/auth/me', HTTP_AUTHORIZATION=f'Bearer {token}')
        self.assertEqual(response.status_code, 401)
