"""Text writer for the prism mid-format (.pim / .pit / .pis).

Format reference (tab indentation, one field per line):
    Header {
    	FormatVersion: 5
    	Name: "cab"
    }
    Piece {
    	Stream {
    		Format: FLOAT3
    		0    ( &3f800000  &00000000  &00000000 )
    	}
    }

Floats are written as "&" + the eight hex digits of their IEEE-754 single
precision bits so the text round-trips exactly.
"""

import struct

_F32 = struct.Struct("<f")
_U32 = struct.Struct("<I")

EOL = "\n"
TAB = "\t"


def float_bits(value):
    """IEEE-754 single precision bit pattern of ``value``."""
    return _U32.unpack(_F32.pack(value))[0]


def flh(value):
    """Format one float: '&3f800000'."""
    return f"&{float_bits(value):08x}"


def vec_str(values):
    """Format a float vector, components separated by two spaces."""
    if isinstance(values, (int, float)):
        values = (values,)
    return "  ".join(flh(v) for v in values)


class MidWriter:
    """Builds mid-format text line by line."""

    def __init__(self, prefix=""):
        self._lines = []
        self._prefix = prefix
        self._indent = 0

    def _pad(self):
        return self._prefix + TAB * self._indent

    # -- primitives --

    def open_block(self, tag):
        """Open a block: 'tag {'"""
        self._lines.append(f"{self._pad()}{tag} {{")
        self._indent += 1

    def close_block(self):
        """Close current block: '}'"""
        self._indent -= 1
        self._lines.append(f"{self._pad()}}}")

    def field(self, key, value):
        """Write a scalar field: 'Key: value'"""
        self._lines.append(f"{self._pad()}{key}: {value}")

    def string(self, key, value):
        """Write a quoted field: 'Key: "value"'"""
        self.field(key, f'"{value}"')

    def vector(self, key, values):
        """Write a vector field: 'Key: ( &.. &.. )'"""
        self.field(key, f"( {vec_str(values)} )")

    def line(self, text):
        """Write a free-form line at the current indentation."""
        self._lines.append(f"{self._pad()}{text}")

    def raw(self, text):
        """Append pre-rendered text (already indented, newline terminated)."""
        self._lines.extend(text.rstrip(EOL).split(EOL))

    def build(self):
        return EOL.join(self._lines) + EOL if self._lines else ""

    # -- convenience --

    def header(self, format_version, source, type_name, name):
        self.open_block("Header")
        self.field("FormatVersion", format_version)
        self.string("Source", source)
        self.string("Type", type_name)
        self.string("Name", name)
        self.close_block()

    def block(self, tag, fields):
        """Write a complete block of scalar fields, in the given order."""
        self.open_block(tag)
        for key, value in fields:
            self.field(key, value)
        self.close_block()
