"""Exceptions raised by the session handler."""


class ConfigurationError(RuntimeError):
    """Raised when a required configuration parameter is missing or invalid."""


class DecodeFailed(RuntimeError):
    """A stored session payload is corrupt or schema-incompatible."""


class EncodeFailed(RuntimeError):
    """Session data could not be serialized for the cache."""
