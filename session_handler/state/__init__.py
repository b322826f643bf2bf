"""Storing and loading the session from the cache."""

from .cache import Cache
from .store import Store, generate_signature
