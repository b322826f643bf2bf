"""
Serialization of session payloads for the cache.

A payload is packed with msgpack, suffixed with a CRC-32 of the packed bytes,
and wrapped in standard base64 so that it can be stored as text. Decoding
reverses each stage and refuses anything that does not survive all of them
intact.
"""

import binascii
import logging
import struct
import zlib
from base64 import b64decode, b64encode
from typing import Any, Dict, Mapping, Optional

import msgpack

from .exceptions import DecodeFailed, EncodeFailed

logger = logging.getLogger(__name__)

CHECKSUM = struct.Struct('>I')


def encode_base64(data: bytes) -> str:
    """Base64-encode ``data`` using the standard alphabet."""
    return b64encode(data).decode('ascii')


def decode_base64(text: str) -> bytes:
    """
    Decode a standard base64 string.

    Raises
    ------
    :class:`.DecodeFailed`
        Raised if ``text`` contains characters outside of the base64 alphabet,
        is incorrectly padded, or is not the canonical encoding of its bytes.

    """
    try:
        data = b64decode(text, validate=True)
    except (binascii.Error, ValueError, TypeError) as e:
        raise DecodeFailed(f'Invalid base64 data: {e}') from e
    # Distinct strings can decode to the same bytes when the unused trailing
    # bits differ; only the canonical form is accepted.
    if encode_base64(data) != text:
        raise DecodeFailed('Non-canonical base64 data')
    return data


def _check_keys(value: Any) -> None:
    if isinstance(value, Mapping):
        for key, item in value.items():
            if not isinstance(key, str):
                raise EncodeFailed(f'Map keys must be strings, got'
                                   f' {type(key).__name__}')
            _check_keys(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _check_keys(item)


class Encoder(object):
    """Packs and unpacks session payloads."""

    def encode_msgpack(self, data: Mapping[str, Any]) -> bytes:
        """
        Pack a string-keyed mapping with msgpack.

        Maps nested anywhere in the payload must also be string-keyed.
        """
        _check_keys(data)
        try:
            packed: bytes = msgpack.packb(dict(data), use_bin_type=True)
        except (TypeError, ValueError, OverflowError) as e:
            raise EncodeFailed(f'Cannot pack session data: {e}') from e
        return packed

    def decode_msgpack(self, packed: bytes) -> Optional[Dict[str, Any]]:
        """
        Unpack msgpack data produced by :meth:`.encode_msgpack`.

        Returns ``None`` if the packed value is nil.
        """
        try:
            data = msgpack.unpackb(packed, raw=False)
        except (ValueError, TypeError,
                msgpack.exceptions.UnpackException) as e:
            raise DecodeFailed(f'Cannot unpack session data: {e}') from e
        if data is None:
            return None
        if not isinstance(data, dict):
            raise DecodeFailed(f'Expected a map, got {type(data).__name__}')
        if not all(isinstance(key, str) for key in data):
            raise DecodeFailed('Session data keys must be strings')
        return data

    def encode(self, data: Mapping[str, Any]) -> str:
        """Encode a payload to its stored text form."""
        packed = self.encode_msgpack(data)
        return encode_base64(packed + CHECKSUM.pack(zlib.crc32(packed)))

    def decode(self, text: str) -> Optional[Dict[str, Any]]:
        """
        Decode the stored text form of a payload.

        Raises
        ------
        :class:`.DecodeFailed`
            Raised if any stage fails, including a checksum mismatch.

        """
        raw = decode_base64(text)
        if len(raw) < CHECKSUM.size:
            raise DecodeFailed('Session data is truncated')
        packed, checksum = raw[:-CHECKSUM.size], raw[-CHECKSUM.size:]
        if CHECKSUM.unpack(checksum)[0] != zlib.crc32(packed):
            logger.debug('Checksum mismatch on %i bytes of session data',
                         len(packed))
            raise DecodeFailed('Session data checksum mismatch')
        return self.decode_msgpack(packed)
