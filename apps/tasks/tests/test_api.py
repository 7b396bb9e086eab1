"""
Integration tests for task API endpoints.
Tests auth enforcement, response envelopes, ownership and the end-to-end flow.
"""
import json
from unittest import mock
from uuid import uuid4

from django.db import DatabaseError
from django.test import Client, TestCase

from apps.identity.jwt_auth import get_token_issuer
from apps.identity.models import User
from apps.tasks.models import Task, TaskStatus


TASKS_URL = '/api/v1/tasks'


class TaskAPITestBase(TestCase):

    def setUp(self):
        self.client = Client()
        self.alice = User.objects.create_user(email='alice@x.com', password='password1', name='Alice')
        self.bob = User.objects.create_user(email='bob@x.com', password='password1', name='Bob')
        self.alice_auth = self.auth_header(self.alice)
        self.bob_auth = self.auth_header(self.bob)

    def auth_header(self, user) -> dict:
        return {'HTTP_AUTHORIZATION': f'Bearer {get_token_issuer().issue(user.id)}'}

    def send(self, method, path, payload=None, auth=None):
        kwargs = dict(auth or {})
        if payload is not None:
            kwargs['data'] = json.dumps(payload)
            kwargs['content_type'] = 'application/json'
        return getattr(self.client, method)(path, **kwargs)

    def create(self, auth=None, **payload):
        payload.setdefault('title', 'T1')
        payload.setdefault('description', 'D1')
        return self.send('post', TASKS_URL, payload, auth or self.alice_auth)


class TaskAuthTest(TaskAPITestBase):
    """Every task endpoint requires a valid bearer token."""

    def test_endpoints_require_auth(self):
        task = Task.objects.create(owner=self.alice, title='T', description='D')
        requests = [
            ('get', TASKS_URL, None),
            ('post', TASKS_URL, {'title': 'T', 'description': 'D'}),
            ('put', f'{TASKS_URL}/{task.id}', {'title': 'x'}),
            ('delete', f'{TASKS_URL}/{task.id}', None),
        ]
        for method, path, payload in requests:
            for auth in [None, {'HTTP_AUTHORIZATION': 'Bearer not-a-token'}]:
                response = self.send(method, path, payload, auth)
                self.assertEqual(response.status_code, 401, f"{method} {path}")
                self.assertEqual(response.json(), {'success': False, 'message': 'Not authorized'})

        task.refresh_from_db()
        self.assertEqual(task.title, 'T')


class TaskCreateAPITest(TaskAPITestBase):

    def test_create_task(self):
        response = self.create(priority='High', dueDate='2030-01-15')
        self.assertEqual(response.status_code, 201)

        body = response.json()
        self.assertTrue(body['success'])
        task = body['data']['task']
        self.assertEqual(task['title'], 'T1')
        self.assertEqual(task['status'], 'Pending')
        self.assertEqual(task['priority'], 'High')
        self.assertTrue(task['dueDate'].startswith('2030-01-15'))
        self.assertEqual(task['owner'], str(self.alice.id))
        self.assertIn('createdAt', task)
        self.assertIn('updatedAt', task)

    def test_create_forces_pending_status(self):
        response = self.create(status='Completed')
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()['data']['task']['status'], 'Pending')

    def test_create_validation_errors(self):
        for payload in [{'title': ''}, {'description': '  '}, {'priority': 'Urgent'}]:
            response = self.create(**payload)
            self.assertEqual(response.status_code, 400)
            self.assertFalse(response.json()['success'])
        self.assertEqual(Task.objects.count(), 0)

    def test_create_with_wrong_types_is_bad_request(self):
        response = self.create(title=['not', 'a', 'string'])
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])

    def test_unparseable_due_date_is_stored_as_null(self):
        response = self.create(dueDate='not a date')
        self.assertEqual(response.status_code, 201)
        self.assertIsNone(response.json()['data']['task']['dueDate'])

    def test_overlong_title_is_bad_request(self):
        response = self.create(title='x' * 256)
        self.assertEqual(response.status_code, 400)
        self.assertFalse(response.json()['success'])
        self.assertEqual(Task.objects.count(), 0)


class TaskListAPITest(TaskAPITestBase):

    def test_list_is_scoped_to_owner(self):
        self.create(title='mine')
        self.create(auth=self.bob_auth, title='theirs')

        response = self.send('get', TASKS_URL, auth=self.alice_auth)
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual([t['title'] for t in data['tasks']], ['mine'])
        self.assertEqual(data['pagination'], {'page': 1, 'limit': 50, 'total': 1, 'pages': 1})

    def test_query_parameters(self):
        for i in range(3):
            self.create(title=f'report {i}', priority='High')
        self.create(title='other', priority='Low')

        response = self.client.get(
            TASKS_URL,
            {'priority': 'High', 'search': 'REPORT', 'page': '2', 'limit': '2', 'sort': 'oldest'},
            **self.alice_auth,
        )
        data = response.json()['data']
        self.assertEqual(len(data['tasks']), 1)
        self.assertEqual(data['pagination'], {'page': 2, 'limit': 2, 'total': 3, 'pages': 2})

    def test_invalid_parameters_are_tolerated(self):
        self.create()
        response = self.client.get(
            TASKS_URL,
            {'status': 'Archived', 'priority': 'Urgent', 'sort': 'random', 'page': '-1', 'limit': '1000'},
            **self.alice_auth,
        )
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['pagination'], {'page': 1, 'limit': 100, 'total': 1, 'pages': 1})

    def test_huge_page_number_is_an_empty_page(self):
        self.create(title='only')
        response = self.client.get(TASKS_URL, {'page': '99999999999999999999'}, **self.alice_auth)
        self.assertEqual(response.status_code, 200)
        data = response.json()['data']
        self.assertEqual(data['tasks'], [])
        self.assertEqual(data['pagination']['total'], 1)
        self.assertEqual(data['pagination']['pages'], 1)

    def test_search_folds_non_ascii_letters(self):
        self.create(title='ÄPFEL kaufen')
        self.create(title='Birnen kaufen')
        response = self.client.get(TASKS_URL, {'search': 'äpfel'}, **self.alice_auth)
        data = response.json()['data']
        self.assertEqual([t['title'] for t in data['tasks']], ['ÄPFEL kaufen'])
        self.assertEqual(data['pagination']['total'], 1)

    def test_unexpected_error_hides_details(self):
        with mock.patch('apps.tasks.services.list_tasks', side_effect=DatabaseError("boom: secret dsn")):
            with self.assertLogs('apps.core.responses', level='ERROR'):
                response = self.send('get', TASKS_URL, auth=self.alice_auth)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {'success': False, 'message': 'Internal server error'})
        self.assertNotIn('boom', response.content.decode())


class TaskUpdateDeleteAPITest(TaskAPITestBase):

    def test_update_task(self):
        task_id = self.create().json()['data']['task']['id']
        response = self.send('put', f'{TASKS_URL}/{task_id}', {'status': 'Completed'}, self.alice_auth)
        self.assertEqual(response.status_code, 200)
        task = response.json()['data']['task']
        self.assertEqual(task['status'], 'Completed')
        self.assertEqual(task['title'], 'T1')

    def test_update_invalid_status(self):
        task_id = self.create().json()['data']['task']['id']
        response = self.send('put', f'{TASKS_URL}/{task_id}', {'status': 'Done'}, self.alice_auth)
        self.assertEqual(response.status_code, 400)

    def test_update_clears_due_date_with_null(self):
        task_id = self.create(dueDate='2030-01-15').json()['data']['task']['id']
        response = self.send('put', f'{TASKS_URL}/{task_id}', {'dueDate': None}, self.alice_auth)
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json()['data']['task']['dueDate'])

    def test_foreign_task_looks_like_missing_task(self):
        task_id = self.create(auth=self.bob_auth).json()['data']['task']['id']

        foreign = self.send('put', f'{TASKS_URL}/{task_id}', {'title': 'x'}, self.alice_auth)
        missing = self.send('put', f'{TASKS_URL}/{uuid4()}', {'title': 'x'}, self.alice_auth)
        malformed = self.send('put', f'{TASKS_URL}/12345', {'title': 'x'}, self.alice_auth)

        self.assertEqual(foreign.status_code, 404)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(malformed.status_code, 404)
        self.assertEqual(foreign.json(), missing.json())
        self.assertEqual(Task.objects.get(id=task_id).title, 'T1')

    def test_delete_foreign_task_is_not_found(self):
        task_id = self.create(auth=self.bob_auth).json()['data']['task']['id']
        response = self.send('delete', f'{TASKS_URL}/{task_id}', auth=self.alice_auth)
        self.assertEqual(response.status_code, 404)
        self.assertTrue(Task.objects.filter(id=task_id).exists())

    def test_delete_task(self):
        task_id = self.create().json()['data']['task']['id']
        response = self.send('delete', f'{TASKS_URL}/{task_id}', auth=self.alice_auth)
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {'success': True, 'message': 'Task deleted successfully'})
        self.assertFalse(Task.objects.filter(id=task_id).exists())


class TaskLifecycleTest(TestCase):
    """Register, log in, and walk one task through its whole life."""

    def post_json(self, path, payload, **extra):
        return self.client.post(path, data=json.dumps(payload), content_type='application/json', **extra)

    def test_full_flow(self):
        registered = self.post_json(
            '/api/v1/auth/register',
            {'name': 'A', 'email': 'a@x.com', 'password': 'password1'},
        )
        self.assertEqual(registered.status_code, 201)
        user_id = registered.json()['data']['user']['id']

        logged_in = self.post_json('/api/v1/auth/login', {'email': 'a@x.com', 'password': 'password1'})
        self.assertEqual(logged_in.status_code, 200)
        self.assertEqual(logged_in.json()['data']['user']['id'], user_id)
        auth = {'HTTP_AUTHORIZATION': f"Bearer {logged_in.json()['data']['token']}"}

        created = self.post_json(TASKS_URL, {'title': 'T1', 'description': 'D1'}, **auth)
        self.assertEqual(created.status_code, 201)
        task = created.json()['data']['task']
        self.assertEqual(task['status'], 'Pending')
        self.assertEqual(task['priority'], 'Medium')

        completed = self.client.get(TASKS_URL, {'status': 'Completed'}, **auth).json()['data']
        self.assertEqual(completed['tasks'], [])
        self.assertEqual(completed['pagination']['pages'], 1)

        updated = self.client.put(
            f"{TASKS_URL}/{task['id']}",
            data=json.dumps({'status': 'Completed'}),
            content_type='application/json',
            **auth,
        )
        self.assertEqual(updated.status_code, 200)
        self.assertEqual(updated.json()['data']['task']['status'], TaskStatus.COMPLETED)

        deleted = self.client.delete(f"{TASKS_URL}/{task['id']}", **auth)
        self.assertEqual(deleted.status_code, 200)

        remaining = self.client.get(TASKS_URL, **auth).json()['data']
        self.assertEqual(remaining['pagination']['total'], 0)
