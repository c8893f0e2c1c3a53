"""HTTP tests for the public and admin API."""

import io
import os
import shutil
import sys
import tempfile
import unittest
from datetime import datetime, timedelta, timezone

import jwt

# Project root on sys.path so tests run without installing the package
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from conftest import ADMIN_PASSWORD, ADMIN_USERNAME, JWT_SECRET, make_config, make_email_channel
from database import InMemoryDocumentStore
from services import TelegramChannel, build_services, run_coroutine_sync
from web.app import create_app


class ApiTestCase(unittest.TestCase):
    """Flask test client against an in-memory store."""

    def setUp(self):
        """Set up test environment."""
        self.upload_dir = tempfile.mkdtemp()
        self.config = make_config(self.upload_dir)
        self.email = make_email_channel()
        self.services = build_services(
            self.config,
            documents=InMemoryDocumentStore(),
            email=self.email,
            chat=TelegramChannel(None, None),
        )
        self.app = create_app(self.config, services=self.services, testing=True)
        self.client = self.app.test_client()

    def tearDown(self):
        """Tear down test environment."""
        shutil.rmtree(self.upload_dir, ignore_errors=True)

    def _token(self):
        response = self.client.post('/login', json={
            'username': ADMIN_USERNAME,
            'password': ADMIN_PASSWORD,
        })
        self.assertEqual(response.status_code, 200)
        return response.get_json()['token']

    def _auth(self):
        return {'Authorization': f'Bearer {self._token()}'}

    def _pay(self, seat_number='S1', phone='+20 100 111 2222', screenshot=True):
        data = {
            'nationalId': '12345',
            'seatNumber': seat_number,
            'phone': phone,
            'email': 'a@b.com',
        }
        if screenshot:
            data['screenshot'] = (io.BytesIO(b'fake image'), 'proof.png')
        return self.client.post('/pay', data=data, content_type='multipart/form-data')


class AuthTestCase(ApiTestCase):

    def test_login_returns_token(self):
        response = self.client.post('/login', json={
            'username': ADMIN_USERNAME,
            'password': ADMIN_PASSWORD,
        })
        body = response.get_json()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(body['success'])
        self.assertEqual(body['expiresIn'], '24h')
        self.assertTrue(body['token'])

    def test_login_accepts_form_data(self):
        response = self.client.post('/login', data={
            'username': ADMIN_USERNAME,
            'password': ADMIN_PASSWORD,
        })
        self.assertEqual(response.status_code, 200)

    def test_login_rejects_wrong_password(self):
        response = self.client.post('/login', json={'username': ADMIN_USERNAME, 'password': 'nope'})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error'], 'invalid_credentials')
        self.assertFalse(response.get_json()['success'])

    def test_login_with_non_string_fields(self):
        response = self.client.post('/login', json={'username': 5, 'password': [ADMIN_PASSWORD]})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error'], 'invalid_credentials')

    def test_missing_header_is_unauthorized(self):
        response = self.client.get('/api/requests')
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()['error'], 'unauthenticated')

    def test_non_bearer_header_is_unauthorized(self):
        response = self.client.get('/api/requests', headers={'Authorization': 'Basic YWRtaW46eA=='})
        self.assertEqual(response.status_code, 401)

    def test_invalid_token_is_forbidden(self):
        response = self.client.get('/api/requests', headers={'Authorization': 'Bearer garbage'})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()['error'], 'token_malformed')

    def test_expired_token_is_forbidden(self):
        issued = datetime.now(timezone.utc) - timedelta(hours=25)
        token = jwt.encode(
            {
                'username': ADMIN_USERNAME,
                'iat': int(issued.timestamp()),
                'exp': int((issued + timedelta(hours=24)).timestamp()),
            },
            JWT_SECRET,
            algorithm='HS256',
        )
        response = self.client.get('/api/requests', headers={'Authorization': f'Bearer {token}'})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.get_json()['error'], 'token_expired')

    def test_rejected_token_has_no_side_effect(self):
        self._pay()
        request_id = run_coroutine_sync(self.services.store.list_requests())[0].id

        response = self.client.delete(f'/api/requests/{request_id}', headers={'Authorization': 'Bearer x'})

        self.assertEqual(response.status_code, 403)
        self.assertIsNotNone(run_coroutine_sync(self.services.store.get_request(request_id)))


class SubmissionApiTestCase(ApiTestCase):

    def test_payment_is_listed_for_admin(self):
        response = self._pay()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.get_json()['success'])
        self.email.send.assert_awaited_once()

        listing = self.client.get('/api/requests', headers=self._auth()).get_json()['requests']
        self.assertEqual(len(listing), 1)
        record = listing[0]
        self.assertEqual(record['phone'], '201001112222')
        self.assertFalse(record['paid'])
        self.assertTrue(record['screenshot'].startswith('/uploads/'))

        image = self.client.get(record['screenshot'])
        self.assertEqual(image.status_code, 200)
        self.assertEqual(image.data, b'fake image')
        image.close()

        single = self.client.get(f"/api/requests/{record['id']}", headers=self._auth())
        self.assertEqual(single.get_json()['request']['id'], record['id'])

    def test_payment_without_screenshot(self):
        response = self._pay(screenshot=False)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'missing_attachment')

    def test_reservation_requires_fields(self):
        response = self.client.post('/reserve', data={
            'nationalId': '12345',
            'screenshot': (io.BytesIO(b'img'), 'proof.png'),
        }, content_type='multipart/form-data')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.get_json()['error'], 'incomplete_submission')

    def test_reservation_by_phone(self):
        response = self.client.post('/api/reserve-by-phone', data={
            'nationalId': '12345',
            'phone': '0100 222 3333',
            'email': 'a@b.com',
            'senderPhone': '0111',
            'screenshot': (io.BytesIO(b'img'), 'proof.jpg'),
        }, content_type='multipart/form-data')
        self.assertEqual(response.status_code, 200)

        listing = self.client.get('/api/reservations', headers=self._auth()).get_json()['reservations']
        self.assertEqual(listing[0]['method'], 'phone')
        self.assertEqual(listing[0]['phone'], '01002223333')

    def test_delete_missing_id_succeeds(self):
        headers = self._auth()
        for path in ('/api/requests/missing', '/api/reservations/missing', '/api/chat-inquiries/missing'):
            response = self.client.delete(path, headers=headers)
            self.assertEqual(response.status_code, 200)
            self.assertTrue(response.get_json()['success'])

    def test_get_missing_record(self):
        response = self.client.get('/api/reservations/missing', headers=self._auth())
        self.assertEqual(response.status_code, 404)

    def test_delete_request(self):
        self._pay()
        headers = self._auth()
        record = self.client.get('/api/requests', headers=headers).get_json()['requests'][0]

        response = self.client.delete(f"/api/requests/{record['id']}", headers=headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.client.get('/api/requests', headers=headers).get_json()['requests'], [])


class ResultApiTestCase(ApiTestCase):

    def test_open_result_and_check(self):
        self._pay()
        headers = self._auth()

        unpaid = self.client.post('/api/check-result', json={'seatNumber': 'S1'})
        self.assertEqual(unpaid.status_code, 402)

        missing = self.client.post('/api/open-result', json={'seatNumber': 'S1'}, headers=headers)
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.get_json()['error'], 'result_not_found')

        run_coroutine_sync(self.services.store.import_results([{'seatNumber': 'S1', 'total': '410'}]))
        opened = self.client.post('/api/open-result', json={'seatNumber': 'S1'}, headers=headers)
        self.assertEqual(opened.status_code, 200)

        by_phone = self.client.post('/api/check-result', json={'phone': '+20 100 111 2222'})
        self.assertEqual(by_phone.status_code, 200)
        self.assertEqual(by_phone.get_json()['result'], {'seatNumber': 'S1', 'total': '410'})

        results = self.client.get('/api/results', headers=headers).get_json()['results']
        self.assertEqual(results[0]['seatNumber'], 'S1')

    def test_open_result_without_request(self):
        response = self.client.post('/api/open-result', json={'seatNumber': 'S9'}, headers=self._auth())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'request_not_found')

    def test_check_unknown_phone(self):
        response = self.client.post('/api/check-result', json={'phone': '0999'})
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'not_found')

    def test_check_paid_without_result(self):
        self._pay()
        request_id = run_coroutine_sync(self.services.store.list_requests())[0].id
        run_coroutine_sync(self.services.documents.update('requests', request_id, {'paid': True}))

        response = self.client.post('/api/check-result', json={'seatNumber': 'S1'})

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'result_unavailable')


class ChatApiTestCase(ApiTestCase):

    def test_chat_inquiry_flow(self):
        response = self.client.post('/api/chat-inquiries', json={
            'message': 'When are results out?',
            'userData': {'name': 'Mona'},
        })
        self.assertEqual(response.status_code, 200)
        inquiry_id = response.get_json()['id']

        headers = self._auth()
        inquiries = self.client.get('/api/chat-inquiries', headers=headers).get_json()['inquiries']
        self.assertEqual(inquiries[0]['userName'], 'Mona')
        self.assertEqual(inquiries[0]['userPhone'], 'unknown')
        self.assertEqual(inquiries[0]['status'], 'new')

        read = self.client.put(f'/api/chat-inquiries/{inquiry_id}/read', headers=headers)
        self.assertEqual(read.status_code, 200)
        inquiry = self.client.get(f'/api/chat-inquiries/{inquiry_id}', headers=headers).get_json()['inquiry']
        self.assertEqual(inquiry['status'], 'read')

    def test_chat_inquiry_requires_message(self):
        response = self.client.post('/api/chat-inquiries', json={'message': ''})
        self.assertEqual(response.status_code, 400)

    def test_mark_missing_inquiry_read(self):
        response = self.client.put('/api/chat-inquiries/missing/read', headers=self._auth())
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'inquiry_not_found')

    def test_send_admin_message(self):
        headers = self._auth()
        response = self.client.post('/api/send-admin-message', json={
            'email': 'user@example.com',
            'message': 'Your result is ready',
        }, headers=headers)
        self.assertEqual(response.status_code, 200)
        self.email.send.assert_awaited_once()

        messages = self.client.get('/api/admin-messages', headers=headers).get_json()['messages']
        self.assertEqual(messages[0]['sentBy'], ADMIN_USERNAME)

    def test_send_admin_message_requires_fields(self):
        response = self.client.post('/api/send-admin-message', json={'email': 'user@example.com'},
                                    headers=self._auth())
        self.assertEqual(response.status_code, 400)
        self.email.send.assert_not_awaited()


class OperationalEndpointsTestCase(ApiTestCase):

    def test_health(self):
        body = self.client.get('/health').get_json()
        self.assertEqual(body['status'], 'ok')
        self.assertEqual(body['storage'], 'memory')
        self.assertEqual(body['channels'], {'email': True, 'chat': False})

    def test_metrics(self):
        self.client.get('/health')
        response = self.client.get('/metrics')
        self.assertEqual(response.status_code, 200)
        self.assertIn(b'http_request_latency_seconds', response.data)

    def test_unknown_route_is_json(self):
        response = self.client.get('/nope')
        self.assertEqual(response.status_code, 404)
        self.assertFalse(response.get_json()['success'])


if __name__ == '__main__':
    unittest.main()
