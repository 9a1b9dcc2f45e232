import struct

import pytest

from pix_converter.errors import BufferBoundsError, FormatError
from pix_converter.utils.binary_reader import BinaryView, RecordLayout

SAMPLE = RecordLayout("Sample", [
    ("name", "Q"),
    ("position", "3f"),
    ("flag", "b"),
    ("_pad", "3x"),
    ("tag", "3s"),
])


def test_record_layout_size_and_fields():
    assert SAMPLE.size == 8 + 12 + 1 + 3 + 3
    assert SAMPLE.record_type._fields == ("name", "position", "flag", "tag")


def test_record_unpack_vector_scalar_and_bytes():
    raw = struct.pack("<Q3fb3x3s", 7, 1.0, 2.0, 3.0, -1, b"gmP")
    rec = SAMPLE.unpack(raw)
    assert rec.name == 7
    assert rec.position == (1.0, 2.0, 3.0)
    assert rec.flag == -1
    assert rec.tag == b"gmP"


def test_record_pack_fills_missing_fields_with_zero():
    rec = SAMPLE.unpack(SAMPLE.pack(name=3))
    assert rec.name == 3
    assert rec.position == (0.0, 0.0, 0.0)
    assert rec.flag == 0
    assert rec.tag == b"\0\0\0"


def test_record_pack_rejects_wrong_vector_length():
    with pytest.raises(ValueError):
        SAMPLE.pack(position=(1.0, 2.0))


def test_record_layout_rejects_bad_code():
    with pytest.raises(ValueError):
        RecordLayout("Bad", [("x", "3")])


def test_scalar_reads():
    data = struct.pack("<BbHiIQf", 0xFF, -2, 0xBEEF, -5, 0xDEADBEEF, 1 << 40, 0.5)
    view = BinaryView(data)
    assert view.read_u8(0) == 0xFF
    assert view.read_i8(1) == -2
    assert view.read_u16(2) == 0xBEEF
    assert view.read_i32(4) == -5
    assert view.read_u32(8) == 0xDEADBEEF
    assert view.read_u64(12) == 1 << 40
    assert view.read_f32(20) == 0.5
    assert len(view) == 24


def test_read_past_end_raises_bounds_error():
    view = BinaryView(b"\x00\x01\x02")
    with pytest.raises(BufferBoundsError) as exc:
        view.read_u32(0)
    err = exc.value
    assert isinstance(err, FormatError)
    assert (err.offset, err.size, err.buffer_size) == (0, 4, 3)


def test_negative_offset_raises_bounds_error():
    view = BinaryView(b"\x00" * 16)
    with pytest.raises(BufferBoundsError):
        view.read_floats(-1, 3)


def test_read_record_checks_bounds():
    view = BinaryView(bytes(SAMPLE.size - 1))
    with pytest.raises(BufferBoundsError):
        view.read_record(SAMPLE, 0)


def test_cstring_stops_at_nul():
    view = BinaryView(b"door\0hinge")
    assert view.read_cstring(0) == "door"


def test_cstring_without_terminator_stops_at_limit():
    view = BinaryView(b"door\0hingeXXXX")
    assert view.read_cstring(5, limit=5) == "hinge"


def test_cstring_without_terminator_stops_at_buffer_end():
    view = BinaryView(b"abc")
    assert view.read_cstring(1) == "bc"
