"""Bounds-checked read-at-offset primitives for prism binary files.

Prism files are flat, offset-addressed blobs: a header declares absolute
offsets for every table and stream. Nothing is aligned implicitly, so every
read goes through ``BinaryView`` which validates the offset against the
buffer length before unpacking.
"""

import re
import struct
from collections import namedtuple

from ..errors import BufferBoundsError


_FIELD_CODE = re.compile(r"^(\d*)([a-zA-Z?])$")

_U8 = struct.Struct("<B")
_I8 = struct.Struct("<b")
_U16 = struct.Struct("<H")
_I32 = struct.Struct("<i")
_U32 = struct.Struct("<I")
_U64 = struct.Struct("<Q")
_F32 = struct.Struct("<f")


class RecordLayout:
    """A packed little-endian record with named fields.

    Fields are given as ``(name, code)`` pairs where ``code`` is a struct
    format code with an optional repeat count. Repeated numeric codes
    (``"3f"``) unpack into a tuple, single codes into a scalar, ``"Ns"``
    into bytes and ``"Nx"`` is padding with no field at all.

        PART = RecordLayout("Part", [("name", "Q"), ("piece_count", "i")])
        part = view.read_record(PART, offset)
        part.piece_count
    """

    def __init__(self, name, fields):
        self.name = name
        self._groups = []
        codes = []
        for field_name, code in fields:
            match = _FIELD_CODE.match(code)
            if match is None:
                raise ValueError(f"Bad field code {code!r} in {name}.{field_name}")
            count = int(match.group(1) or 1)
            kind = match.group(2)
            codes.append(code)
            if kind == "x":
                continue
            if kind == "s":
                count = 1
            self._groups.append((field_name, count, count > 1, kind))
        self.struct = struct.Struct("<" + "".join(codes))
        self.size = self.struct.size
        self.record_type = namedtuple(name, [g[0] for g in self._groups])

    def unpack(self, data, offset=0):
        values = self.struct.unpack_from(data, offset)
        out = []
        pos = 0
        for _name, count, is_vector, _kind in self._groups:
            if is_vector:
                out.append(tuple(values[pos:pos + count]))
            else:
                out.append(values[pos])
            pos += count
        return self.record_type._make(out)

    def pack(self, **fields):
        """Serialize a record from keyword fields.

        Missing fields are zero; missing byte strings are NUL-filled.
        """
        flat = []
        for name, count, is_vector, kind in self._groups:
            value = fields.get(name)
            if is_vector:
                value = tuple(value) if value is not None else (0,) * count
                if len(value) != count:
                    raise ValueError(f"{self.name}.{name} needs {count} values")
                flat.extend(value)
            elif value is None:
                flat.append(b"" if kind == "s" else 0)
            else:
                flat.append(value)
        return self.struct.pack(*flat)

    def __repr__(self):
        return f"RecordLayout({self.name}, size={self.size})"


class BinaryView:
    """Read-only view over an in-memory file buffer."""

    __slots__ = ('data', 'size')

    def __init__(self, data):
        self.data = bytes(data)
        self.size = len(self.data)

    def check(self, offset, size):
        if offset < 0 or offset + size > self.size:
            raise BufferBoundsError(offset, size, self.size)

    def _unpack(self, fmt, offset):
        self.check(offset, fmt.size)
        return fmt.unpack_from(self.data, offset)[0]

    def read_u8(self, offset):
        return self._unpack(_U8, offset)

    def read_i8(self, offset):
        return self._unpack(_I8, offset)

    def read_u16(self, offset):
        return self._unpack(_U16, offset)

    def read_i32(self, offset):
        return self._unpack(_I32, offset)

    def read_u32(self, offset):
        return self._unpack(_U32, offset)

    def read_u64(self, offset):
        return self._unpack(_U64, offset)

    def read_f32(self, offset):
        return self._unpack(_F32, offset)

    def read_floats(self, offset, count):
        size = 4 * count
        self.check(offset, size)
        return struct.unpack_from(f"<{count}f", self.data, offset)

    def read_bytes(self, offset, count):
        self.check(offset, count)
        return self.data[offset:offset + count]

    def read_record(self, layout, offset):
        self.check(offset, layout.size)
        return layout.unpack(self.data, offset)

    def read_cstring(self, offset, limit=None):
        """Read a NUL-terminated string.

        The string ends at the first NUL, at ``offset + limit`` or at the end
        of the buffer, whichever comes first.
        """
        self.check(offset, 0)
        end = self.size if limit is None else min(self.size, offset + max(limit, 0))
        raw = self.data[offset:end]
        null_pos = raw.find(b"\0")
        if null_pos >= 0:
            raw = raw[:null_pos]
        return raw.decode("utf-8", errors="replace")

    def __len__(self):
        return self.size
