"""Defines session data concepts."""

from datetime import datetime
from typing import Any, Dict, Iterator, Mapping, NamedTuple, Optional

from pytz import UTC

from .exceptions import DecodeFailed

EXPIRES = 'expires'
EXPIRATION = 'expiration'
LAST_ACCESS = 'last_access'
SIGNIN_INFO = 'signin_info'


def now() -> int:
    """Get the current epoch/unix time."""
    return int(datetime.now(tz=UTC).timestamp())


def from_epoch(t: int) -> datetime:
    """Get a :class:`datetime` from an UNIX timestamp."""
    return datetime.fromtimestamp(t, tz=UTC)


def _checked_int(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key)
    if value is None:
        return 0
    # bool is an int subclass, but never a valid timestamp or period.
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeFailed(f'Expected an integer for {key},'
                           f' got {type(value).__name__}')
    return value


def _get_map(data: Mapping[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = data.get(key)
    return value if isinstance(value, dict) else None


class OAuth2Token(NamedTuple):
    """OAuth2 credentials held by a signed-in session."""

    access_token: str
    refresh_token: str
    expiry: Optional[datetime] = None


class SessionData(object):
    """
    The payload of a session.

    Well-known fields are held as typed attributes; every other key lives in
    :attr:`extra`, which is opaque to the session handler. Item access
    (``data['key']``) reads and writes :attr:`extra`.

    ``expires`` is the absolute expiry in epoch seconds, or 0 if it has not
    been computed. ``expiration`` is a per-session lifetime in seconds that
    overrides the configured default when non-zero.
    """

    def __init__(self, extra: Optional[Dict[str, Any]] = None,
                 expires: int = 0, expiration: int = 0, last_access: int = 0,
                 signin_info: Optional[Dict[str, Any]] = None) -> None:
        self.extra: Dict[str, Any] = extra if extra is not None else {}
        self.expires = expires
        self.expiration = expiration
        self.last_access = last_access
        self.signin_info = signin_info

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> 'SessionData':
        """
        Build a :class:`SessionData` from a decoded payload mapping.

        Raises
        ------
        :class:`.DecodeFailed`
            Raised if a well-known field has an unexpected type.

        """
        if not data:
            return cls()
        signin_info = data.get(SIGNIN_INFO)
        if signin_info is not None and not isinstance(signin_info, dict):
            raise DecodeFailed(f'Expected a map for {SIGNIN_INFO}')
        known = (EXPIRES, EXPIRATION, LAST_ACCESS, SIGNIN_INFO)
        return cls(
            extra={k: v for k, v in data.items() if k not in known},
            expires=_checked_int(data, EXPIRES),
            expiration=_checked_int(data, EXPIRATION),
            last_access=_checked_int(data, LAST_ACCESS),
            signin_info=signin_info
        )

    def to_dict(self) -> Dict[str, Any]:
        """Flatten to the payload mapping that is written to the cache."""
        data = dict(self.extra)
        if self.expires:
            data[EXPIRES] = self.expires
        if self.expiration:
            data[EXPIRATION] = self.expiration
        if self.last_access:
            data[LAST_ACCESS] = self.last_access
        if self.signin_info is not None:
            data[SIGNIN_INFO] = self.signin_info
        return data

    @property
    def is_empty(self) -> bool:
        """Indicates that there is nothing worth persisting."""
        return not self.to_dict()

    @property
    def expires_at(self) -> Optional[datetime]:
        """The expiry time as an aware datetime, if set."""
        if not self.expires:
            return None
        return from_epoch(self.expires)

    def refresh_expiration(self, period: int) -> None:
        """Push the expiry ``period`` seconds into the future."""
        current = now()
        self.expires = current + period
        self.last_access = current

    @property
    def is_signed_in(self) -> bool:
        """Whether the sign-in flag is set."""
        flag = (self.signin_info or {}).get('signed_in')
        return isinstance(flag, int) and flag == 1

    def _token_map(self, create: bool = False) -> Optional[Dict[str, Any]]:
        if create:
            if not isinstance(self.signin_info, dict):
                self.signin_info = {}
            if not isinstance(self.signin_info.get('access_token'), dict):
                self.signin_info['access_token'] = {}
        if self.signin_info is None:
            return None
        return _get_map(self.signin_info, 'access_token')

    def _get_token_field(self, key: str) -> str:
        tokens = self._token_map() or {}
        value = tokens.get(key)
        return value if isinstance(value, str) else ''

    @property
    def access_token(self) -> str:
        """The OAuth2 access token, or an empty string."""
        return self._get_token_field('access_token')

    def set_access_token(self, token: str) -> None:
        """Set the OAuth2 access token."""
        self._token_map(create=True)['access_token'] = token  # type: ignore

    @property
    def refresh_token(self) -> str:
        """The OAuth2 refresh token, or an empty string."""
        return self._get_token_field('refresh_token')

    def set_refresh_token(self, token: str) -> None:
        """Set the OAuth2 refresh token."""
        self._token_map(create=True)['refresh_token'] = token  # type: ignore

    def get_expiration(self) -> int:
        """Lifetime of the access token in seconds, or 0 if unknown."""
        value = (self._token_map() or {}).get('expires_in')
        if isinstance(value, bool) or not isinstance(value, int):
            return 0
        return value

    def get_oauth2_token(self) -> Optional[OAuth2Token]:
        """Get the OAuth2 credentials, if the session is signed in."""
        if not self.is_signed_in:
            return None
        return OAuth2Token(access_token=self.access_token,
                           refresh_token=self.refresh_token,
                           expiry=self.expires_at)

    def get(self, key: str, default: Any = None) -> Any:
        return self.extra.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.extra[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.extra[key] = value

    def __delitem__(self, key: str) -> None:
        del self.extra[key]

    def __contains__(self, key: object) -> bool:
        return key in self.extra

    def __iter__(self) -> Iterator[str]:
        return iter(self.extra)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SessionData):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (f'SessionData(keys={sorted(self.extra)!r},'
                f' expires={self.expires!r})')
