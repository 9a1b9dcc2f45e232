"""Geometry schema 0x13.

Skin weights are deduplicated: each vertex stores a u16 bind index into two
parallel byte tables (bone indices and weights), each ``bone_count`` entries
wide per bind. Vertices sharing identical weights share one table entry.

Vertex streams are split in two pools when the piece is skinned:
position/normal/tangent in a "static" pool and texcoords/colors in a
"dynamic" pool, each with its own stride. Unskinned pieces interleave
everything with a single stride.
"""

from ..model.entities import BONE_COUNT, Piece
from .pmg_constants import (
    ABSENT, HEADER_0x13, PIECE_0x13, PMG_TAG_0x13, PMG_VERSION_0x13,
    BIND_INDEX_SIZE,
)
from .pmg_reader import GeometryDecoder, ParsedGeometry, register_decoder


@register_decoder
class Pmg13Decoder(GeometryDecoder):
    VERSION = PMG_VERSION_0x13
    TAG = PMG_TAG_0x13
    HEADER = HEADER_0x13

    def decode(self) -> ParsedGeometry:
        header = self.read_header()
        geometry = ParsedGeometry(self.VERSION)

        geometry.bones = self.read_bones(header.bone_offset, header.bone_count)
        geometry.parts = self.read_parts(header.part_offset, header.part_count)
        geometry.locators = self.read_locators(
            header.locator_offset, header.locator_count,
            header.locator_name_offset, header.locator_name_size,
        )

        for i in range(header.piece_count):
            rec = self.view.read_record(PIECE_0x13, header.piece_offset + i * PIECE_0x13.size)
            geometry.add_piece(self._read_piece(i, rec))
        return geometry

    def _read_piece(self, index, rec):
        piece = Piece(index)
        piece.texcoord_mask = rec.uv_mask
        piece.texcoord_count = rec.uv_channels
        piece.bones = rec.bone_count
        piece.material = rec.material
        self.check_bone_width(piece)
        self.check_vertex_count(piece, rec.verts)

        offsets = (
            rec.vert_position_offset, rec.vert_normal_offset, rec.vert_tangent_offset,
            rec.vert_uv_offset, rec.vert_rgba_offset, rec.vert_rgba2_offset,
        )
        static_stride, dynamic_stride = self.enable_streams(piece, *offsets)
        if rec.bone_count == 0:
            static_stride += dynamic_stride
            dynamic_stride = static_stride

        skinned = rec.anim_bind_offset != ABSENT
        width = min(rec.bone_count, BONE_COUNT)
        for j in range(rec.verts):
            vert = self.read_vertex(piece, j, offsets, static_stride, dynamic_stride)
            if skinned:
                self._read_bind(vert, rec, j, width)
            piece.vertices.append(vert)

        piece.triangles = self.read_triangles(rec.triangle_offset, rec.edges)
        return piece

    def _read_bind(self, vert, rec, j, width):
        view = self.view
        bind = view.read_u16(rec.anim_bind_offset + j * BIND_INDEX_SIZE)
        row = bind * rec.bone_count
        for k in range(width):
            vert.bone_index[k] = view.read_i8(rec.anim_bind_bones_offset + row + k)
            vert.bone_weight[k] = view.read_u8(rec.anim_bind_bones_weight_offset + row + k)
        for k in range(width, BONE_COUNT):
            vert.bone_index[k] = -1
            vert.bone_weight[k] = 0
