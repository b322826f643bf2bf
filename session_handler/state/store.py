"""
Loads, stores and invalidates sessions held in the cache.

The client holds a cookie whose value is a session ID followed by a signature
of that ID. Only the service knows the secret used for signing, so a valid
signature shows that the ID was issued here. The session payload lives in the
cache under the ID, and carries its own expiry.
"""

import hashlib
import hmac
import logging
import secrets
from typing import Optional

from .. import domain
from ..config import StoreConfig
from ..domain import SessionData
from ..exceptions import DecodeFailed
from ..encoding import Encoder, encode_base64
from .cache import Cache

logger = logging.getLogger(__name__)

# A multiple of 3 bytes avoids = padding in the base64 form:
# 21 bytes -> 28 characters.
ID_OCTETS = 7 * 3
SIGNATURE_START = (ID_OCTETS * 4) // 3
SIGNATURE_LENGTH = 27
COOKIE_VALUE_LENGTH = SIGNATURE_START + SIGNATURE_LENGTH


def generate_signature(session_id: str, secret: str) -> str:
    """Sign a session ID with the cookie secret."""
    digest = hmac.new(secret.encode('utf-8'), session_id.encode('utf-8'),
                      hashlib.sha256).digest()
    return encode_base64(digest)[:SIGNATURE_LENGTH]


class Store(object):
    """
    Session state for a single request.

    A :class:`Store` is not shared between requests; only the :class:`.Cache`
    behind it is. Concurrent writes of the same session ID are last-write-wins.
    """

    def __init__(self, cache: Cache, config: StoreConfig,
                 encoder: Optional[Encoder] = None) -> None:
        self.cache = cache
        self.config = config
        self.encoder = encoder if encoder is not None else Encoder()
        self.id = ''
        self.data: Optional[SessionData] = None

    @property
    def expires(self) -> int:
        """Absolute expiry of the loaded session, or 0 if not computed."""
        return self.data.expires if self.data is not None else 0

    @property
    def expiration(self) -> int:
        """Per-session lifetime override, or 0 to use the default."""
        return self.data.expiration if self.data is not None else 0

    @property
    def cookie_value(self) -> str:
        """Value to send back to the client in the session cookie."""
        if not self.id:
            raise RuntimeError('No session ID has been issued')
        return self.id + self.generate_signature()

    def regenerate_id(self) -> None:
        """Issue a new random session ID."""
        self.id = encode_base64(secrets.token_bytes(ID_OCTETS))

    def generate_signature(self, session_id: Optional[str] = None) -> str:
        """Sign ``session_id``, or the current ID if not given."""
        return generate_signature(
            session_id if session_id is not None else self.id,
            self.config.cookie_secret
        )

    def validate_session_id(self, cookie_value: str) -> bool:
        """Check that a cookie value carries an ID signed by this service."""
        if len(cookie_value) < COOKIE_VALUE_LENGTH:
            logger.debug('Cookie value is shorter than %i characters',
                         COOKIE_VALUE_LENGTH)
            return False
        session_id = cookie_value[:SIGNATURE_START]
        signature = cookie_value[SIGNATURE_START:]
        if not hmac.compare_digest(signature.encode('utf-8'),
                                   self.generate_signature(session_id)
                                   .encode('utf-8')):
            logger.debug('Cookie signature does not match')
            return False
        return True

    def load(self, cookie_value: Optional[str]) -> SessionData:
        """
        Load the session identified by a cookie value.

        An absent, malformed or forged cookie, an unknown session ID and a
        lapsed session all result in a fresh, empty session. These are not
        errors.

        Parameters
        ----------
        cookie_value : str

        Returns
        -------
        :class:`.SessionData`
            The loaded session, or an empty one.

        Raises
        ------
        :class:`redis.exceptions.RedisError`
            Raised if the cache could not be read.
        :class:`.DecodeFailed`
            Raised if the stored payload is corrupt. The store is left with
            an empty payload.

        """
        if not cookie_value or not self.validate_session_id(cookie_value):
            self._reset()
            return self.data    # type: ignore

        self.id = cookie_value[:SIGNATURE_START]
        stored = self.cache.get(self.id)
        if stored is None:
            logger.debug('No stored session for ID %s', self.id)
            self._reset()
            return self.data    # type: ignore

        self.data = SessionData()
        try:
            self.data = SessionData.from_dict(self.encoder.decode(stored))
        except DecodeFailed as e:
            logger.info('Failed to decode session %s: %s', self.id, e)
            raise

        if self.data.is_empty:
            self.clear()
        else:
            self._validate_expiration()
        return self.data

    def store(self, data: Optional[SessionData] = None) -> None:
        """
        Persist the session to the cache.

        Parameters
        ----------
        data : :class:`.SessionData`
            Replaces the current payload, if given.

        Raises
        ------
        :class:`.ConfigurationError`
            Raised if an expiry is needed and the default is not usable.
        :class:`.EncodeFailed`
            Raised if the payload cannot be serialized.
        :class:`redis.exceptions.RedisError`
            Raised if the cache write fails.

        """
        if data is not None:
            self.data = data
        if self.data is None or self.data.is_empty:
            logger.info('No session data to store')
            return
        if not self.id:
            self.regenerate_id()
        if not self.expires:
            self.setup_expiration()

        encoded = self.encoder.encode(self.data.to_dict())
        self.cache.set(self.id, encoded)
        logger.info('Session data successfully stored with ID: %s', self.id)

    def delete(self, session_id: Optional[str] = None) -> None:
        """
        Remove a session from the cache.

        This does not clear the loaded session; see :meth:`.clear`.

        Parameters
        ----------
        session_id : str
            The session to delete. Defaults to the current session.

        """
        self.cache.delete(session_id or self.id)

    def clear(self) -> None:
        """
        Destroy the current session and issue a new ID.

        A failure to delete the stored session is logged; the payload is
        emptied and the ID regenerated regardless.
        """
        if self.id:
            try:
                self.delete()
            except Exception as e:
                logger.error('Failed to delete session %s: %s', self.id, e)
        self._reset()

    def setup_expiration(self) -> None:
        """
        Compute the absolute expiry of the current session.

        Uses the session's own ``expiration`` period if set, otherwise the
        configured default, and stamps ``last_access``.
        """
        if self.data is None:
            self.data = SessionData()
        period = self.expiration
        if not period:
            period = self.config.get_default_expiration()
            logger.debug('Setting expiration period on session ID %s to %i'
                         ' seconds', self.id, period)
        self.data.refresh_expiration(period)

    def _validate_expiration(self) -> None:
        if not self.expires:
            self.setup_expiration()
        elif self.expires <= domain.now():
            logger.debug('Session %s has expired', self.id)
            self.clear()

    def _reset(self) -> None:
        self.data = SessionData()
        self.regenerate_id()
