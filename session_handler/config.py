"""
Configuration for the session handler.

Module-level values are read from the environment at import time and are
used as defaults by :class:`.httpsession.SessionHandler`. The core
:class:`.state.store.Store` never reads them directly; it is given a
:class:`StoreConfig` at construction.
"""

import os
from typing import Any, Mapping, NamedTuple, Optional

from flask import current_app, has_app_context

from .exceptions import ConfigurationError

DEFAULT_SESSION_EXPIRATION = os.environ.get('DEFAULT_SESSION_EXPIRATION',
                                            '3600')
"""Default session lifetime, in seconds."""

COOKIE_NAME = os.environ.get('COOKIE_NAME', '__SID')
COOKIE_SECRET = os.environ.get('COOKIE_SECRET')

CACHE_SERVER = os.environ.get('CACHE_SERVER', 'localhost')
CACHE_PORT = os.environ.get('CACHE_PORT', '6379')
CACHE_DB = os.environ.get('CACHE_DB', '0')
CACHE_PASSWORD = os.environ.get('CACHE_PASSWORD')
CACHE_CLUSTER = os.environ.get('CACHE_CLUSTER', '0')
CACHE_TIMEOUT = os.environ.get('CACHE_TIMEOUT', '5')


class StoreConfig(NamedTuple):
    """Parameters required by :class:`.Store`."""

    default_expiration: Optional[str]
    """
    Session lifetime in seconds.

    Kept as the raw configured value; it is parsed only when an expiry has to
    be computed, so that a bad value fails the write that needs it.
    """

    cookie_name: str
    cookie_secret: str

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'StoreConfig':
        """Build a :class:`StoreConfig` from a Flask config or similar."""
        secret = config.get('COOKIE_SECRET')
        if not secret:
            raise ConfigurationError('Missing required parameter COOKIE_SECRET')
        return cls(
            default_expiration=config.get('DEFAULT_SESSION_EXPIRATION'),
            cookie_name=config.get('COOKIE_NAME', COOKIE_NAME),
            cookie_secret=secret
        )

    def get_default_expiration(self) -> int:
        """
        Parse the configured default expiration period.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if the value is missing, not an integer, or negative.

        """
        if self.default_expiration is None:
            raise ConfigurationError('Default session expiration is not set')
        try:
            period = int(str(self.default_expiration).strip())
        except ValueError as e:
            raise ConfigurationError(
                f'Invalid default session expiration:'
                f' {self.default_expiration!r}'
            ) from e
        if period < 0:
            raise ConfigurationError('Default session expiration is negative')
        return period


class CacheConfig(NamedTuple):
    """Connection parameters for the Redis cache."""

    host: str = 'localhost'
    port: int = 6379
    db: int = 0
    password: Optional[str] = None
    cluster: bool = False
    timeout: Optional[float] = None

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'CacheConfig':
        """Build a :class:`CacheConfig` from a Flask config or similar."""
        try:
            timeout = config.get('CACHE_TIMEOUT')
            return cls(
                host=config.get('CACHE_SERVER', CACHE_SERVER),
                port=int(config.get('CACHE_PORT', CACHE_PORT)),
                db=int(config.get('CACHE_DB', CACHE_DB)),
                password=config.get('CACHE_PASSWORD') or None,
                cluster=str(config.get('CACHE_CLUSTER', '0')) == '1',
                timeout=float(timeout) if timeout else None
            )
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f'Invalid cache parameter: {e}') from e


def get_application_config(app: Optional[Any] = None) -> Mapping[str, Any]:
    """
    Get the configuration mapping for an application.

    Uses ``app`` if given, else the current Flask application, falling back
    to the process environment outside of an application context.
    """
    if app is not None:
        return app.config   # type: ignore
    if has_app_context():
        return current_app.config
    return os.environ
