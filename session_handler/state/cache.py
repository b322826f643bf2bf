"""Thin adapter over the Redis connection that holds session payloads."""

import logging
from typing import Any, Optional

import redis
from redis.cluster import RedisCluster

from ..config import CacheConfig
from ..exceptions import DecodeFailed

logger = logging.getLogger(__name__)


class Cache(object):
    """
    Gets, sets and deletes encoded session payloads by session ID.

    The Redis client is thread safe and connections are drawn from its pool
    at the time a command is executed, so a single :class:`Cache` may be
    shared by all requests. No TTL is ever set on a key; expiry is carried in
    the payload. Errors raised by the client are not caught.
    """

    def __init__(self, connection: Any, ping: bool = True) -> None:
        """
        Wrap an open Redis client.

        Parameters
        ----------
        connection : :class:`redis.StrictRedis`
            Or anything with the same ``get``, ``set``, ``delete`` and
            ``ping`` methods.
        ping : bool
            If True (default), verify connectivity now.

        """
        self.connection = connection
        if ping:
            self.connection.ping()

    @classmethod
    def from_config(cls, config: CacheConfig) -> 'Cache':
        """Connect to Redis using ``config``."""
        logger.debug('New Redis connection at %s, port %s', config.host,
                     config.port)
        connection: Any
        if config.cluster:
            connection = RedisCluster(host=config.host, port=config.port,
                                      password=config.password,
                                      socket_timeout=config.timeout,
                                      decode_responses=True)
        else:
            connection = redis.StrictRedis(host=config.host, port=config.port,
                                           db=config.db,
                                           password=config.password,
                                           socket_timeout=config.timeout,
                                           decode_responses=True)
        return cls(connection)

    def get(self, key: str) -> Optional[str]:
        """
        Get the value stored at ``key``, or None if there is none.

        Raises
        ------
        :class:`.DecodeFailed`
            Raised if the stored value is not UTF-8 text.

        """
        value = self.connection.get(key)
        if isinstance(value, bytes):
            try:
                return value.decode('utf-8')
            except UnicodeDecodeError as e:
                raise DecodeFailed(f'Stored value at {key} is not text') from e
        return value

    def set(self, key: str, value: str) -> None:
        """Store ``value`` at ``key`` without expiry."""
        self.connection.set(key, value)

    def delete(self, key: str) -> None:
        """Remove ``key``. Removing a missing key is not an error."""
        self.connection.delete(key)
