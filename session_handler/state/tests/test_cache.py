"""Tests for :mod:`session_handler.state.cache`."""

from unittest import TestCase, mock

from redis.exceptions import ConnectionError, TimeoutError

from ...config import CacheConfig
from ...exceptions import DecodeFailed
from .. import cache


class TestCache(TestCase):
    """The cache adapter passes commands through to Redis."""

    def setUp(self):
        self.connection = mock.MagicMock()
        self.cache = cache.Cache(self.connection)

    def test_ping_on_construction(self):
        """Connectivity is checked when the adapter is created."""
        self.assertEqual(self.connection.ping.call_count, 1)

    def test_ping_fails(self):
        """A failed health check is raised."""
        connection = mock.MagicMock()
        connection.ping.side_effect = ConnectionError('nope')
        with self.assertRaises(ConnectionError):
            cache.Cache(connection)

    def test_no_ping(self):
        """The health check can be skipped."""
        connection = mock.MagicMock()
        cache.Cache(connection, ping=False)
        self.assertEqual(connection.ping.call_count, 0)

    def test_get(self):
        """Values are returned as text."""
        self.connection.get.return_value = 'foovalue'
        self.assertEqual(self.cache.get('fookey'), 'foovalue')
        self.connection.get.assert_called_once_with('fookey')

    def test_get_bytes(self):
        """Byte responses are decoded."""
        self.connection.get.return_value = b'foovalue'
        self.assertEqual(self.cache.get('fookey'), 'foovalue')

    def test_get_bytes_not_text(self):
        """Bytes that are not UTF-8 are not rewritten."""
        self.connection.get.return_value = b'foo\xff\xfe'
        with self.assertRaises(DecodeFailed):
            self.cache.get('fookey')

    def test_get_missing(self):
        """A missing key gives None."""
        self.connection.get.return_value = None
        self.assertIsNone(self.cache.get('fookey'))

    def test_set_without_ttl(self):
        """Values are written without an expiry."""
        self.cache.set('fookey', 'foovalue')
        self.connection.set.assert_called_once_with('fookey', 'foovalue')

    def test_delete(self):
        """Keys are deleted."""
        self.cache.delete('fookey')
        self.connection.delete.assert_called_once_with('fookey')

    def test_errors_pass_through(self):
        """Transport errors are not caught or retried."""
        self.connection.get.side_effect = TimeoutError('slow')
        with self.assertRaises(TimeoutError):
            self.cache.get('fookey')
        self.assertEqual(self.connection.get.call_count, 1)


class TestFromConfig(TestCase):
    """Tests for :meth:`.Cache.from_config`."""

    @mock.patch(f'{cache.__name__}.redis.StrictRedis')
    def test_standalone(self, mock_redis):
        """A single Redis node is used by default."""
        config = CacheConfig(host='redis', port=1234, db=4, password='pw',
                             timeout=2.0)
        c = cache.Cache.from_config(config)
        mock_redis.assert_called_once_with(host='redis', port=1234, db=4,
                                           password='pw', socket_timeout=2.0,
                                           decode_responses=True)
        self.assertEqual(c.connection.ping.call_count, 1)

    @mock.patch(f'{cache.__name__}.RedisCluster')
    def test_cluster(self, mock_cluster):
        """A Redis cluster can be used instead."""
        config = CacheConfig(host='redis', port=7000, cluster=True)
        c = cache.Cache.from_config(config)
        mock_cluster.assert_called_once_with(host='redis', port=7000,
                                             password=None,
                                             socket_timeout=None,
                                             decode_responses=True)
        self.assertIs(c.connection, mock_cluster.return_value)
