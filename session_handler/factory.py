"""Application factory for a session-enabled app."""

import os
from typing import Any, Mapping, Optional

from flask import Flask, jsonify, request

from . import app_logging
from .httpsession import SessionHandler, current_session, current_store
from .state.cache import Cache


def create_web_app(config: Optional[Mapping[str, Any]] = None,
                   cache: Optional[Cache] = None) -> Flask:
    """
    Initialize a Flask app with the session handler.

    Configuration is taken from :mod:`session_handler.config` and then
    overridden by ``config``. The app serves ``/session``, which
    returns (GET) or updates (POST) the application data held in the session,
    and ``/logout``, which destroys the session.
    """
    app = Flask('session_handler')
    app.config.from_object('session_handler.config')
    if config:
        app.config.update(config)

    app_logging.setup_logger(os.environ.get('LOGLEVEL', 'INFO'))
    SessionHandler(app, cache=cache)

    @app.route('/session')
    def show_session() -> Any:
        return jsonify(current_session().extra)

    @app.route('/session', methods=['POST'])
    def update_session() -> Any:
        data = current_session()
        for key, value in (request.get_json(force=True) or {}).items():
            data[key] = value
        return jsonify(data.extra)

    @app.route('/logout', methods=['POST'])
    def logout() -> Any:
        current_store().clear()
        return jsonify({})

    return app
