"""
Flask integration.

:class:`SessionHandler` loads the session named by the request cookie before
each request, and stores it and refreshes the cookie after each request.

.. code-block:: python

   from flask import Flask
   from session_handler.httpsession import SessionHandler, current_session


   def create_web_app() -> Flask:
       app = Flask('someapp')
       app.config.from_pyfile('config.py')
       SessionHandler(app)
       return app

Within a request, :func:`current_session` returns the
:class:`.SessionData` to read and modify.
"""

import logging
import threading
from typing import Optional

from flask import Flask, Response, g, request

from . import config as defaults
from .config import CacheConfig, StoreConfig, get_application_config
from .domain import SessionData
from .state.cache import Cache
from .state.store import Store

logger = logging.getLogger(__name__)

EXTENSION = 'session_handler'


class SessionHandler(object):
    """Attaches a per-request :class:`.Store` to the Flask request context."""

    def __init__(self, app: Optional[Flask] = None,
                 cache: Optional[Cache] = None) -> None:
        """
        Initialize ``app`` with the session handler.

        Parameters
        ----------
        app : :class:`Flask`
        cache : :class:`.Cache`
            Shared cache adapter. If not given, one is connected from the
            application config on first use.

        """
        self._cache = cache
        self._cache_lock = threading.Lock()
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        """Set configuration defaults and register the request hooks."""
        app.config.setdefault('DEFAULT_SESSION_EXPIRATION',
                              defaults.DEFAULT_SESSION_EXPIRATION)
        app.config.setdefault('COOKIE_NAME', defaults.COOKIE_NAME)
        app.config.setdefault('COOKIE_SECRET', defaults.COOKIE_SECRET)
        app.config.setdefault('CACHE_SERVER', defaults.CACHE_SERVER)
        app.config.setdefault('CACHE_PORT', defaults.CACHE_PORT)
        app.config.setdefault('CACHE_DB', defaults.CACHE_DB)
        app.config.setdefault('CACHE_PASSWORD', defaults.CACHE_PASSWORD)
        app.config.setdefault('CACHE_CLUSTER', defaults.CACHE_CLUSTER)
        app.config.setdefault('CACHE_TIMEOUT', defaults.CACHE_TIMEOUT)
        app.extensions[EXTENSION] = self
        app.before_request(self.load_session)
        app.after_request(self.store_session)

    def get_cache(self) -> Cache:
        """Get the shared cache adapter, connecting if necessary."""
        if self._cache is None:
            with self._cache_lock:
                if self._cache is None:
                    self._cache = Cache.from_config(
                        CacheConfig.from_mapping(get_application_config())
                    )
        return self._cache

    def load_session(self) -> None:
        """Load the session named by the request cookie, if any."""
        store_config = StoreConfig.from_mapping(get_application_config())
        store = Store(self.get_cache(), store_config)
        store.load(request.cookies.get(store_config.cookie_name, ''))
        logger.debug('Session %s attached to request', store.id)
        g.session_store = store

    def store_session(self, response: Response) -> Response:
        """Persist the session and send the (possibly new) session cookie."""
        store: Optional[Store] = g.get('session_store')
        if store is None:     # before_request did not complete.
            return response
        store.store()
        response.set_cookie(store.config.cookie_name, store.cookie_value,
                            httponly=True)
        return response


def current_store() -> Store:
    """Get the :class:`.Store` for the current request."""
    store: Optional[Store] = g.get('session_store')
    if store is None:
        raise RuntimeError('No session loaded for this request')
    return store


def current_session() -> SessionData:
    """Get the session data for the current request."""
    data = current_store().data
    if data is None:
        raise RuntimeError('No session loaded for this request')
    return data
