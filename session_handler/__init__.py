"""
Server-side HTTP sessions backed by Redis.

The session ID travels in a signed cookie; the session data is held in the
cache. See :mod:`.state.store`.
"""
