"""Fixed-width binary records.

:class:`RecordBuffer` presents a contiguous byte region as a sequence of
``esize``-byte records so the merge sort can reorder raw binary data the
same way it reorders Python objects. Records are handed to comparators as
``bytes`` objects; the comparators below decode them with :mod:`struct` or
with a numpy dtype.
"""

from __future__ import annotations

import struct
from collections.abc import Sequence
from typing import Any, Iterable, Iterator, List, Optional, Tuple

import numpy as np

from .comparators import Comparator, natural_order


class RecordBuffer(Sequence):
    """Mutable view of ``buffer`` as consecutive records of ``esize`` bytes.

    Parameters
    ----------
    buffer:
        Any writable object exporting the buffer protocol (``bytearray``,
        writable ``memoryview``, ``array.array``, numpy array). Writes go
        straight to the caller's memory.
    esize:
        Width of one record in bytes. The buffer length must be a multiple
        of it.
    """

    def __init__(self, buffer: Any, esize: int) -> None:
        if esize <= 0:
            raise ValueError(f"element size must be positive, got {esize}")
        if isinstance(buffer, np.ndarray):
            buffer = _byte_view(buffer)
        view = memoryview(buffer)
        if view.readonly:
            view.release()
            raise ValueError("record buffer must be writable")
        if view.ndim != 1 or view.format != "B":
            view = view.cast("B")
        nbytes = len(view)
        if nbytes % esize:
            view.release()
            raise ValueError(
                f"buffer of {nbytes} bytes is not a whole number of {esize}-byte records"
            )
        self.esize = esize
        self._view = view

    # Constructors --------------------------------------------------
    @classmethod
    def from_struct(cls, fmt: str, rows: Iterable[Any]) -> "RecordBuffer":
        """Pack ``rows`` with ``struct`` format ``fmt`` into a new buffer.

        A row that is not a tuple is packed as a single field.
        """
        packer = struct.Struct(fmt)
        data = bytearray()
        for row in rows:
            if not isinstance(row, tuple):
                row = (row,)
            data += packer.pack(*row)
        return cls(data, packer.size)

    @classmethod
    def from_array(cls, array: np.ndarray) -> "RecordBuffer":
        """Wrap a C-contiguous numpy array; one element is one record."""
        return cls(array, array.dtype.itemsize)

    # Sequence protocol ---------------------------------------------
    def __len__(self) -> int:
        return len(self._view) // self.esize

    def _offset(self, index: int) -> int:
        count = len(self)
        if index < 0:
            index += count
        if not 0 <= index < count:
            raise IndexError("record index out of range")
        return index * self.esize

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self[i] for i in range(*index.indices(len(self)))]
        start = self._offset(index)
        return self._view[start:start + self.esize].tobytes()

    def __setitem__(self, index: int, record: bytes) -> None:
        if len(record) != self.esize:
            raise ValueError(
                f"record must be exactly {self.esize} bytes, got {len(record)}"
            )
        start = self._offset(index)
        self._view[start:start + self.esize] = record

    def __iter__(self) -> Iterator[bytes]:
        for start in range(0, len(self._view), self.esize):
            yield self._view[start:start + self.esize].tobytes()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(records={len(self)}, esize={self.esize})"

    # Scratch space -------------------------------------------------
    def allocate(self, count: int) -> "RecordBuffer":
        """Return a zeroed scratch buffer of ``count`` records of the same width."""
        return RecordBuffer(bytearray(count * self.esize), self.esize)

    def release(self) -> None:
        self._view.release()

    # Decoding ------------------------------------------------------
    def tobytes(self) -> bytes:
        return self._view.tobytes()

    def unpack(self, fmt: str) -> List[Tuple[Any, ...]]:
        """Decode every record with ``struct`` format ``fmt``."""
        if struct.calcsize(fmt) != self.esize:
            raise ValueError(f"format {fmt!r} does not describe {self.esize}-byte records")
        return list(struct.iter_unpack(fmt, self._view))


def _byte_view(array: np.ndarray) -> np.ndarray:
    if not array.flags.c_contiguous:
        raise ValueError("numpy array must be C-contiguous to be sorted in place")
    if not array.flags.writeable:
        raise ValueError("numpy array must be writeable")
    return array.reshape(-1).view(np.uint8)


def struct_comparator(
    fmt: str, field: int = 0, compare: Comparator = natural_order
) -> Comparator:
    """Compare records by field ``field`` after unpacking them with ``fmt``."""
    unpacker = struct.Struct(fmt)

    def _compare(a: bytes, b: bytes) -> int:
        return compare(unpacker.unpack(a)[field], unpacker.unpack(b)[field])

    return _compare


def dtype_comparator(
    dtype: Any, field: Optional[str] = None, compare: Comparator = natural_order
) -> Comparator:
    """Compare records decoded as a single numpy ``dtype`` value.

    ``field`` selects a member of a structured dtype; it is required there
    because whole structured records have no ordering.
    """
    dtype = np.dtype(dtype)
    if dtype.names is not None and field is None:
        raise ValueError("a field name is required for structured dtypes")

    def _decode(record: bytes) -> Any:
        value = np.frombuffer(record, dtype=dtype, count=1)[0]
        return value[field] if field is not None else value

    def _compare(a: bytes, b: bytes) -> int:
        return compare(_decode(a), _decode(b))

    return _compare
