import pytest

from session_handler import factory
from session_handler.tests.util import FakeCache


@pytest.fixture()
def cache():
    return FakeCache()


@pytest.fixture()
def app(cache):
    return factory.create_web_app({
        'TESTING': True,
        'COOKIE_NAME': 'foo_cookie',
        'COOKIE_SECRET': 'foosecret',
        'DEFAULT_SESSION_EXPIRATION': '60'
    }, cache=cache)


@pytest.fixture()
def client(app):
    return app.test_client()
