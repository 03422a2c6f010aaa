"""
Tests for store error mapping and rate limiting.
"""
from unittest.mock import MagicMock, patch

import redis
from django.core.exceptions import PermissionDenied
from django.db import DatabaseError, IntegrityError
from django.db.models import ProtectedError
from django.test import SimpleTestCase, override_settings
from rest_framework.response import Response
from rest_framework.test import APIRequestFactory

from core.errors import (
    INVALID_REFERENCE_MESSAGE,
    MISSING_FIELD_MESSAGE,
    PERMISSION_DENIED_MESSAGE,
    PROTECTED_MESSAGE,
    describe_store_error,
)
from core.rate_limiting import get_client_ip, rate_limit


def integrity_error(message, pgcode=None):
    error = IntegrityError(message)
    if pgcode:
        cause = Exception(message)
        cause.pgcode = pgcode
        error.__cause__ = cause
    return error


class DescribeStoreErrorTestCase(SimpleTestCase):

    def test_foreign_key_violation(self):
        self.assertEqual(
            describe_store_error(integrity_error('insert violates fk', '23503')),
            INVALID_REFERENCE_MESSAGE
        )
        self.assertEqual(
            describe_store_error(integrity_error('FOREIGN KEY constraint failed')),
            INVALID_REFERENCE_MESSAGE
        )

    def test_not_null_violation(self):
        self.assertEqual(describe_store_error(integrity_error('null value', '23502')), MISSING_FIELD_MESSAGE)
        self.assertEqual(
            describe_store_error(integrity_error('NOT NULL constraint failed: inventory.name')),
            MISSING_FIELD_MESSAGE
        )

    def test_permission_errors(self):
        self.assertEqual(describe_store_error(integrity_error('denied', '42501')), PERMISSION_DENIED_MESSAGE)
        self.assertEqual(describe_store_error(PermissionDenied()), PERMISSION_DENIED_MESSAGE)

    def test_protected_delete(self):
        self.assertEqual(describe_store_error(ProtectedError('in use', set())), PROTECTED_MESSAGE)

    def test_unclassified_keeps_raw_message(self):
        self.assertEqual(describe_store_error(DatabaseError('server closed the connection')),
                         'server closed the connection')
        self.assertEqual(describe_store_error(integrity_error('duplicate key', '23505')), 'duplicate key')


class LimitedView:

    @rate_limit('test', max_requests=2, window_seconds=30)
    def post(self, request):
        return Response({'ok': True})


class RateLimitTestCase(SimpleTestCase):

    def setUp(self):
        self.factory = APIRequestFactory()
        self.view = LimitedView()

    def test_client_ip_prefers_forwarded_header(self):
        request = self.factory.post('/', HTTP_X_FORWARDED_FOR='10.0.0.9, 172.16.0.1')
        self.assertEqual(get_client_ip(request), '10.0.0.9')

    @patch('core.rate_limiting.get_redis_client')
    def test_requests_over_limit_get_429(self, mock_client):
        client = MagicMock()
        client.incr.side_effect = [1, 2, 3]
        client.ttl.return_value = 25
        mock_client.return_value = client

        responses = [self.view.post(self.factory.post('/')) for _ in range(3)]

        self.assertEqual([r.status_code for r in responses], [200, 200, 429])
        self.assertEqual(responses[1]['X-RateLimit-Remaining'], '0')
        self.assertEqual(responses[2]['Retry-After'], '25')
        client.expire.assert_called_once()

    @patch('core.rate_limiting.get_redis_client', return_value=None)
    def test_fails_open_without_redis(self, mock_client):
        response = self.view.post(self.factory.post('/'))
        self.assertEqual(response.status_code, 200)

    @patch('core.rate_limiting.get_redis_client')
    def test_fails_open_on_redis_error(self, mock_client):
        client = MagicMock()
        client.incr.side_effect = redis.ConnectionError('gone')
        mock_client.return_value = client

        self.assertEqual(self.view.post(self.factory.post('/')).status_code, 200)

    @override_settings(RATE_LIMIT_ENABLED=False)
    @patch('core.rate_limiting.get_redis_client')
    def test_disabled_skips_redis(self, mock_client):
        self.view.post(self.factory.post('/'))
        mock_client.assert_not_called()
