"""
In-memory Bitstring Status List.

Entries are packed MSB-first: bit 0 is the leftmost (most significant) bit of
byte 0, and an entry of ``status_size`` bits occupies bits
``[index * status_size, (index + 1) * status_size)``.
"""

from __future__ import annotations

import math

from bitstring_status_list.codec import (
    MIN_UNCOMPRESSED_BYTE_LENGTH,
    decode_bitstring,
    encode_bitstring,
)
from bitstring_status_list.errors import ErrorCode, StatusListError, ensure


MINIMUM_ENTRY_COUNT = 131_072


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _positive_int(value: object, name: str) -> int:
    if not _is_int(value) or value < 1:
        raise StatusListError(
            ErrorCode.MALFORMED_VALUE, f"{name} must be a positive integer."
        )
    return value


class BitstringStatusList:
    """Fixed-size bitstring holding one status value per entry.

    The backing buffer is owned by the instance; it is copied on the way in
    and (by default) on the way out.
    """

    def __init__(
        self,
        entry_count: int | None = None,
        status_size: int = 1,
        minimum_entries: int = MINIMUM_ENTRY_COUNT,
        source: bytes | bytearray | memoryview | None = None,
    ) -> None:
        """Create a status list.

        Args:
            entry_count: Number of entries the list must address. Without
                ``source`` it is raised to ``minimum_entries``; with
                ``source`` it defaults to the buffer capacity.
            status_size: Bits per entry.
            minimum_entries: Floor on the number of addressable entries.
            source: Uncompressed bitstring to copy into the list.

        Raises:
            StatusListError: MALFORMED_VALUE for non-positive sizes,
                STATUS_LIST_LENGTH when the buffer is below the 16KB floor or
                cannot hold the requested entries.
        """
        self._minimum_entries = _positive_int(minimum_entries, "minimumEntries")
        self._status_size = _positive_int(status_size, "statusSize")
        if entry_count is not None:
            _positive_int(entry_count, "entryCount")

        if source is not None:
            self._bytes = bytearray(source)
            ensure(
                len(self._bytes) >= MIN_UNCOMPRESSED_BYTE_LENGTH,
                ErrorCode.STATUS_LIST_LENGTH,
                "Decoded bitstring is shorter than 16KB minimum length.",
            )
            capacity = (len(self._bytes) * 8) // self._status_size
            ensure(
                capacity >= self._minimum_entries,
                ErrorCode.STATUS_LIST_LENGTH,
                f"Bitstring capacity ({capacity}) is smaller than the minimum "
                f"required entries ({self._minimum_entries}).",
            )
            if entry_count is not None:
                ensure(
                    entry_count <= capacity,
                    ErrorCode.STATUS_LIST_LENGTH,
                    f"entryCount ({entry_count}) exceeds bitstring capacity ({capacity}).",
                )
                self._entry_count = entry_count
            else:
                self._entry_count = capacity
        else:
            self._entry_count = max(entry_count or self._minimum_entries, self._minimum_entries)
            byte_length = math.ceil(self._entry_count * self._status_size / 8)
            self._bytes = bytearray(max(byte_length, MIN_UNCOMPRESSED_BYTE_LENGTH))

    @classmethod
    def from_encoded(
        cls,
        encoded_list: str,
        status_size: int | None = None,
        entry_count: int | None = None,
        minimum_entries: int | None = None,
    ) -> BitstringStatusList:
        """Rebuild a list from an encodedList token."""
        return cls(
            entry_count=entry_count,
            status_size=status_size if status_size is not None else 1,
            minimum_entries=(
                minimum_entries if minimum_entries is not None else MINIMUM_ENTRY_COUNT
            ),
            source=decode_bitstring(encoded_list),
        )

    @property
    def status_size(self) -> int:
        return self._status_size

    @property
    def entry_count(self) -> int:
        return self._entry_count

    @property
    def minimum_entries(self) -> int:
        return self._minimum_entries

    @property
    def status_bit_length(self) -> int:
        """Length of the backing buffer in bits."""
        return len(self._bytes) * 8

    def __len__(self) -> int:
        return self._entry_count

    def __repr__(self) -> str:
        return (
            f"BitstringStatusList(entry_count={self._entry_count}, "
            f"status_size={self._status_size})"
        )

    def encode(self) -> str:
        """Encode the current state as an encodedList token."""
        return encode_bitstring(self.to_bytes(copy=False))

    def to_bytes(self, copy: bool = True) -> bytes | memoryview:
        """Return the uncompressed bitstring.

        Args:
            copy: Return an independent copy. With ``copy=False`` a read-only
                view over the owned buffer is returned instead; it reflects
                later writes and must not outlive the caller's use.
        """
        if copy:
            return bytes(self._bytes)
        return memoryview(self._bytes).toreadonly()

    def get_entry(self, index: int) -> int:
        """Read the status value at ``index``.

        Raises:
            StatusListError: RANGE if index is outside [0, entry_count).
        """
        self._check_index(index)
        value = 0
        base = index * self._status_size
        for offset in range(self._status_size):
            value = (value << 1) | self._get_bit(base + offset)
        return value

    def set_entry(self, index: int, value: int) -> None:
        """Write the status value at ``index``.

        Raises:
            StatusListError: RANGE if index or value is out of bounds,
                MALFORMED_VALUE if either is not an integer.
        """
        self.validate_entry(index, value)
        base = index * self._status_size
        for offset in range(self._status_size):
            shift = self._status_size - offset - 1
            self._set_bit(base + offset, bool((value >> shift) & 1))

    def validate_entry(self, index: int, value: int) -> None:
        """Apply the checks of set_entry without writing anything."""
        self._check_index(index)
        if not _is_int(value):
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE,
                "Status value must be a non-negative integer.",
            )
        max_value = (1 << self._status_size) - 1
        ensure(
            0 <= value <= max_value,
            ErrorCode.RANGE,
            f"Status value {value} is outside of range 0-{max_value}.",
        )

    def fill(self, value: int = 0) -> None:
        """Set every entry to ``value``."""
        self.validate_entry(0, value)
        if value == 0:
            total_bits = self._entry_count * self._status_size
            full_bytes, remainder = divmod(total_bits, 8)
            self._bytes[:full_bytes] = bytes(full_bytes)
            if remainder:
                self._bytes[full_bytes] &= 0xFF >> remainder
            return
        for index in range(self._entry_count):
            self.set_entry(index, value)

    def _check_index(self, index: int) -> None:
        if not _is_int(index):
            raise StatusListError(
                ErrorCode.MALFORMED_VALUE, f"Index {index!r} is not an integer."
            )
        ensure(
            0 <= index < self._entry_count,
            ErrorCode.RANGE,
            f"Index {index} is outside of range 0-{self._entry_count - 1}.",
        )

    def _get_bit(self, bit_index: int) -> int:
        byte_index = bit_index // 8
        bit_position = 7 - (bit_index % 8)  # MSB first
        return (self._bytes[byte_index] >> bit_position) & 1

    def _set_bit(self, bit_index: int, value: bool) -> None:
        byte_index = bit_index // 8
        mask = 1 << (7 - (bit_index % 8))
        if value:
            self._bytes[byte_index] |= mask
        else:
            self._bytes[byte_index] &= ~mask & 0xFF
