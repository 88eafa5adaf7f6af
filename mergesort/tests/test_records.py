import struct

import numpy as np
import pytest

from mergesort.memory import FailingAllocator
from mergesort.exceptions import AllocationFailure
from mergesort.merge_sort import MergeStats, sort
from mergesort.records import RecordBuffer, dtype_comparator, struct_comparator


def test_sort_int32_records():
    raw = bytearray(struct.pack("<6i", 5, 3, 8, 1, 9, 2))
    sort(raw, 6, 4, 0, 5, struct_comparator("<i"))
    assert struct.unpack("<6i", raw) == (1, 2, 3, 5, 8, 9)


def test_sort_empty_buffer():
    raw = bytearray()
    sort(raw, 0, 4, 0, -1, struct_comparator("<i"))
    assert raw == bytearray()


def test_byte_records_ties_prefer_right_run():
    raw = bytearray(RecordBuffer.from_struct("<ic", [(1, b"a"), (1, b"b")]).tobytes())
    sort(raw, 2, 5, 0, 1, struct_comparator("<ic"))
    assert RecordBuffer(raw, 5).unpack("<ic") == [(1, b"b"), (1, b"a")]


def test_sort_uses_record_scratch_buffers():
    raw = bytearray(struct.pack("<4h", 4, -1, 3, 0))
    stats = MergeStats()
    sort(raw, 4, 2, 0, 3, struct_comparator("<h"), stats=stats)
    assert struct.unpack("<4h", raw) == (-1, 0, 3, 4)
    assert stats.allocations.acquired == stats.allocations.released == 3


def test_sort_failure_reported_for_records():
    raw = bytearray(struct.pack("<3i", 3, 2, 1))
    with pytest.raises(AllocationFailure):
        sort(raw, 3, 4, 0, 2, struct_comparator("<i"), allocator=FailingAllocator())
    assert struct.unpack("<3i", raw) == (3, 2, 1)


def test_buffer_resizable_after_allocation_failure():
    raw = bytearray(struct.pack("<3i", 3, 2, 1))
    with pytest.raises(AllocationFailure):
        sort(raw, 3, 4, 0, 2, struct_comparator("<i"), allocator=FailingAllocator())
    raw.extend(b"\x00" * 4)
    assert len(raw) == 16


def test_buffer_resizable_after_comparator_error():
    def broken(a, b):
        raise RuntimeError("cannot compare")

    raw = bytearray(struct.pack("<3i", 3, 2, 1))
    with pytest.raises(RuntimeError):
        sort(raw, 3, 4, 0, 2, broken)
    raw.extend(b"\x00" * 4)
    assert len(raw) == 16


def test_buffer_resizable_after_successful_sort():
    raw = bytearray(struct.pack("<3i", 3, 2, 1))
    sort(raw, 3, 4, 0, 2, struct_comparator("<i"))
    raw.extend(struct.pack("<i", 0))
    assert struct.unpack("<4i", raw) == (1, 2, 3, 0)


def test_caller_record_buffer_stays_usable():
    records = RecordBuffer.from_struct("<i", [3, 1, 2])
    sort(records, 3, 4, 0, 2, struct_comparator("<i"))
    assert records.unpack("<i") == [(1,), (2,), (3,)]


def test_invalid_element_size():
    with pytest.raises(ValueError):
        sort(bytearray(4), 1, 0, 0, 0, struct_comparator("<i"))


def test_misaligned_buffer():
    raw = bytearray(7)
    with pytest.raises(ValueError):
        RecordBuffer(raw, 4)
    raw.append(0)
    assert len(raw) == 8


def test_readonly_buffer_rejected():
    with pytest.raises(ValueError):
        RecordBuffer(b"\x00" * 8, 4)


def test_record_access():
    records = RecordBuffer(bytearray(b"aabbcc"), 2)
    assert len(records) == 3
    assert records[0] == b"aa"
    assert records[-1] == b"cc"
    assert records[1:] == [b"bb", b"cc"]
    records[1] = b"zz"
    assert list(records) == [b"aa", b"zz", b"cc"]
    with pytest.raises(ValueError):
        records[0] = b"toolong"
    with pytest.raises(IndexError):
        records[3]


def test_unpack_checks_format_width():
    records = RecordBuffer.from_struct("<i", [1, 2])
    assert records.unpack("<i") == [(1,), (2,)]
    with pytest.raises(ValueError):
        records.unpack("<h")


def test_numpy_structured_records_sorted_in_place():
    dt = np.dtype([("key", "<i4"), ("val", "<f8")])
    arr = np.array([(3, 0.3), (1, 0.1), (2, 0.2)], dtype=dt)
    sort(arr, len(arr), dt.itemsize, 0, len(arr) - 1, dtype_comparator(dt, "key"))
    assert arr["key"].tolist() == [1, 2, 3]
    assert arr["val"].tolist() == [0.1, 0.2, 0.3]


def test_from_array_shares_memory():
    arr = np.array([30, 10, 20], dtype=np.int64)
    records = RecordBuffer.from_array(arr)
    assert records.esize == 8
    sort(arr, 3, 8, 0, 2, dtype_comparator(np.int64))
    assert arr.tolist() == [10, 20, 30]
    assert records.unpack("=q") == [(10,), (20,), (30,)]


def test_non_contiguous_array_rejected():
    arr = np.arange(10, dtype=np.int32)[::2]
    with pytest.raises(ValueError):
        RecordBuffer.from_array(arr)


def test_structured_dtype_needs_field():
    with pytest.raises(ValueError):
        dtype_comparator(np.dtype([("a", "<i4")]))
