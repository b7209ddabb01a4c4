"""
Bitstring wire codec.

encodedList = "u" + base64url-no-pad(gzip(bitstring))
"""

from __future__ import annotations

import base64
import binascii
import gzip
import logging
import zlib

from bitstring_status_list.errors import ErrorCode, StatusListError


log = logging.getLogger(__name__)

MULTIBASE_BASE64URL_PREFIX = "u"
MIN_UNCOMPRESSED_BYTE_LENGTH = 16 * 1024  # 16KB, 131072 bits


def encode_bitstring(data: bytes | bytearray | memoryview) -> str:
    """Compress and encode an uncompressed bitstring.

    Args:
        data: The uncompressed bitstring, at least 16KB long.

    Returns:
        The multibase base64url encoded list.

    Raises:
        StatusListError: STATUS_LIST_LENGTH if the bitstring is shorter than 16KB.
    """
    if len(data) < MIN_UNCOMPRESSED_BYTE_LENGTH:
        raise StatusListError(
            ErrorCode.STATUS_LIST_LENGTH,
            f"Bitstring must be at least {MIN_UNCOMPRESSED_BYTE_LENGTH} bytes "
            "(16KB) before compression.",
        )

    # Fixed mtime keeps the output byte-identical for identical input
    compressed = gzip.compress(bytes(data), mtime=0)
    encoded = base64.urlsafe_b64encode(compressed).rstrip(b"=").decode("ascii")
    return f"{MULTIBASE_BASE64URL_PREFIX}{encoded}"


def decode_bitstring(encoded_list: str) -> bytes:
    """Decode and decompress an encodedList.

    Decoding: gunzip(base64url_decode(encoded_list[1:]))

    Args:
        encoded_list: Multibase base64url encoded, gzip compressed bitstring.

    Returns:
        Raw bytes representing the bitstring.

    Raises:
        StatusListError: MALFORMED_VALUE if the prefix or the payload is invalid.
    """
    if (
        not isinstance(encoded_list, str)
        or not encoded_list
        or encoded_list[0] != MULTIBASE_BASE64URL_PREFIX
    ):
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE,
            f'Encoded list must be multibase base64url prefixed with "{MULTIBASE_BASE64URL_PREFIX}".',
        )

    data = encoded_list[1:]
    padding = "=" * (-len(data) % 4)
    try:
        compressed = base64.urlsafe_b64decode(data + padding)
        bitstring = gzip.decompress(compressed)
    except (binascii.Error, ValueError, EOFError, OSError, zlib.error) as e:
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE,
            f"Failed to decode encodedList payload: {e}",
            cause=e,
        ) from e

    log.debug(
        "Decoded encodedList: %d compressed bytes -> %d bytes",
        len(compressed),
        len(bitstring),
    )
    return bitstring
