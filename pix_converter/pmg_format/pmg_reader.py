"""Prism geometry (.pmg) reader.

Reads a whole .pmg buffer into a ParsedGeometry. The schema is picked from
the u32 tag in the first four bytes; each schema is a GeometryDecoder
subclass registered in GEOMETRY_DECODERS.

Both schemas decode in the same order:
    1. bones        (fixed records)
    2. parts        (fixed records, piece/locator ranges)
    3. locators     (fixed records + hookup strings from a pool)
    4. pieces       (vertex streams addressed by per-stream offsets)
    5. skinning     (schema specific, see the subclasses)
    6. triangles    (u16 index triples)
"""

import logging
from typing import Dict, Optional

from ..errors import FormatError
from ..model.entities import BONE_COUNT, Bone, Locator, Part, Vertex
from ..utils.binary_reader import BinaryView
from ..utils.token import token_to_string
from .pmg_constants import (
    ABSENT, PMG_SIGNATURE,
    BONE, PART, LOCATOR, TANGENT, COLOR, TRIANGLE,
    POSITION_SIZE, NORMAL_SIZE, TANGENT_SIZE, TEXCOORD_SIZE, COLOR_SIZE,
)

_log = logging.getLogger("pix_pmg")


class ParsedGeometry:
    """Everything decoded from one .pmg file, plus the aggregate counters."""

    __slots__ = (
        'version', 'bones', 'parts', 'locators', 'pieces',
        'vert_count', 'triangle_count', 'skin_vert_count',
    )

    def __init__(self, version):
        self.version = version
        self.bones = []
        self.parts = []
        self.locators = []
        self.pieces = []
        self.vert_count = 0
        self.triangle_count = 0
        self.skin_vert_count = 0

    def add_piece(self, piece):
        self.pieces.append(piece)
        self.vert_count += len(piece.vertices)
        self.triangle_count += len(piece.triangles)
        if piece.bones > 0:
            self.skin_vert_count += len(piece.vertices)

    def __repr__(self):
        return (
            f"ParsedGeometry(v=0x{self.version:02x}, pieces={len(self.pieces)}, "
            f"verts={self.vert_count}, tris={self.triangle_count}, "
            f"bones={len(self.bones)})"
        )


def decode_color(rgba):
    """rgba8 -> floats in [0, 2]: value = 2 * byte / 255."""
    return tuple(2.0 * channel / 255.0 for channel in rgba)


class GeometryDecoder:
    """Shared decoding steps for every .pmg schema.

    Subclasses set VERSION, TAG and HEADER and implement decode().
    """

    VERSION = None
    TAG = None
    HEADER = None

    def __init__(self, data, source="<buffer>"):
        self.view = data if isinstance(data, BinaryView) else BinaryView(data)
        self.source = source

    def decode(self) -> ParsedGeometry:
        raise NotImplementedError

    # -- header --

    def read_header(self):
        header = self.view.read_record(self.HEADER, 0)
        if header.version != self.VERSION or header.signature != PMG_SIGNATURE:
            raise FormatError(
                f"Invalid version of geometry file: \"{self.source}\" "
                f"(have: {header.version} signature: "
                f"{header.signature[::-1].decode('latin-1')}, "
                f"expected: {self.VERSION})",
                expected=(self.VERSION, PMG_SIGNATURE),
                actual=(header.version, header.signature),
            )
        return header

    # -- fixed records --

    def read_bones(self, offset, count):
        bones = []
        for i in range(count):
            rec = self.view.read_record(BONE, offset + i * BONE.size)
            bones.append(Bone(
                index=i,
                name=token_to_string(rec.name),
                parent=rec.parent,
                transformation=rec.transformation,
                transformation_reversed=rec.transformation_reversed,
                stretch=rec.stretch,
                rotation=rec.rotation,
                translation=rec.translation,
                scale=rec.scale,
                sign_of_determinant=rec.sign_of_determinant,
            ))
        return bones

    def read_parts(self, offset, count):
        parts = []
        for i in range(count):
            rec = self.view.read_record(PART, offset + i * PART.size)
            parts.append(Part(
                name=token_to_string(rec.name),
                piece_index=rec.piece_index,
                piece_count=rec.piece_count,
                locator_index=rec.locator_index,
                locator_count=rec.locator_count,
            ))
        return parts

    def read_locators(self, offset, count, pool_offset, pool_size):
        locators = []
        for i in range(count):
            rec = self.view.read_record(LOCATOR, offset + i * LOCATOR.size)
            hookup = ""
            if rec.hookup_offset != ABSENT:
                # No terminator inside the pool: stop at the pool end
                hookup = self.view.read_cstring(
                    pool_offset + rec.hookup_offset,
                    limit=pool_size - rec.hookup_offset,
                )
            locators.append(Locator(
                index=i,
                name=token_to_string(rec.name),
                position=rec.position,
                rotation=rec.rotation,
                scale=rec.scale,
                hookup=hookup,
            ))
        return locators

    # -- pieces --

    def check_vertex_count(self, piece, verts):
        """Reject vertex counts larger than the file itself.

        Every stored vertex takes at least one byte, so a larger count can
        only come from a corrupt header (a piece without streams would
        otherwise allocate ``verts`` empty vertices).
        """
        if verts > self.view.size:
            raise FormatError(
                f"Piece {piece.index} of \"{self.source}\" declares {verts} vertices, "
                f"more than the file size ({self.view.size} bytes)",
                expected=self.view.size,
                actual=verts,
            )

    def check_bone_width(self, piece):
        if piece.bones > BONE_COUNT:
            _log.warning(
                "Bone count in '%s' piece %d: %d exceeds maximum bone count (%d); "
                "extra influences are dropped",
                self.source, piece.index, piece.bones, BONE_COUNT,
            )

    @staticmethod
    def enable_streams(piece, position, normal, tangent, texcoord, color, color2):
        """Flag the present streams on ``piece``.

        Returns (static_size, dynamic_size): the per-vertex byte size of the
        position/normal/tangent group and of the texcoord/color group.
        """
        static_size = 0
        dynamic_size = 0
        if position != ABSENT:
            piece.position = True
            piece.stream_count += 1
            static_size += POSITION_SIZE
        if normal != ABSENT:
            piece.normal = True
            piece.stream_count += 1
            static_size += NORMAL_SIZE
        if tangent != ABSENT:
            piece.tangent = True
            piece.stream_count += 1
            static_size += TANGENT_SIZE
        if texcoord != ABSENT:
            piece.texcoord = True
            piece.stream_count += piece.texcoord_count
            dynamic_size += TEXCOORD_SIZE * piece.texcoord_count
        if color != ABSENT:
            piece.color = True
            piece.stream_count += 1
            dynamic_size += COLOR_SIZE
        if color2 != ABSENT:
            piece.color2 = True
            piece.stream_count += 1
            dynamic_size += COLOR_SIZE
        return static_size, dynamic_size

    def read_vertex(self, piece, j, offsets, static_stride, dynamic_stride):
        """Decode the attribute streams of vertex ``j``.

        ``offsets`` is (position, normal, tangent, texcoord, color, color2).
        Position, normal and tangent step by ``static_stride``; texcoords and
        colors by ``dynamic_stride``.
        """
        view = self.view
        position, normal, tangent, texcoord, color, color2 = offsets
        vert = Vertex()
        if piece.position:
            vert.position = view.read_floats(position + static_stride * j, 3)
        if piece.normal:
            vert.normal = view.read_floats(normal + static_stride * j, 3)
        if piece.tangent:
            t = view.read_record(TANGENT, tangent + static_stride * j)
            vert.tangent = (t.w, t.x, t.y, t.z)
        if piece.texcoord:
            base = texcoord + dynamic_stride * j
            vert.texcoords = [
                view.read_floats(base + TEXCOORD_SIZE * k, 2)
                for k in range(piece.texcoord_count)
            ]
        if piece.color:
            vert.color = decode_color(view.read_record(COLOR, color + dynamic_stride * j))
        if piece.color2:
            vert.color2 = decode_color(view.read_record(COLOR, color2 + dynamic_stride * j))
        return vert

    def read_triangles(self, offset, edges):
        # A trailing partial triangle (edges % 3) is ignored.
        return [
            self.view.read_record(TRIANGLE, offset + TRIANGLE.size * j).indices
            for j in range(edges // 3)
        ]


# ---------------------------------------------------------------------------
# Decoder registry
# ---------------------------------------------------------------------------

GEOMETRY_DECODERS: Dict[int, type] = {}


def register_decoder(decoder_cls):
    """Register a GeometryDecoder subclass under its 4-byte tag."""
    GEOMETRY_DECODERS[decoder_cls.TAG] = decoder_cls
    return decoder_cls


def load_decoders():
    """Import the schema modules; importing them registers their decoders."""
    from . import pmg_0x13, pmg_0x14  # noqa: F401
    return GEOMETRY_DECODERS


def get_decoder(tag) -> Optional[type]:
    return load_decoders().get(tag)


def read_geometry(data, source="<buffer>") -> ParsedGeometry:
    """Decode a complete .pmg buffer, auto-detecting the schema.

    Raises:
        FormatError: unknown signature/version tag or out-of-range offsets.
    """
    load_decoders()

    view = data if isinstance(data, BinaryView) else BinaryView(data)
    if view.size < 4:
        raise FormatError(
            f"Geometry file too small: \"{source}\" ({view.size} bytes)",
            expected=sorted(GEOMETRY_DECODERS), actual=view.data,
        )
    tag = view.read_u32(0)
    decoder_cls = get_decoder(tag)
    if decoder_cls is None:
        raw = view.read_bytes(0, 4)
        expected = " or ".join(str(cls.VERSION) for cls in GEOMETRY_DECODERS.values())
        raise FormatError(
            f"Invalid version of geometry file: \"{source}\" "
            f"(have: {raw[0]} signature: {raw[3:0:-1].decode('latin-1')}, "
            f"expected: {expected})",
            expected=sorted(GEOMETRY_DECODERS), actual=raw,
        )
    _log.debug("%s: geometry schema 0x%02x", source, decoder_cls.VERSION)
    return decoder_cls(view, source).decode()
