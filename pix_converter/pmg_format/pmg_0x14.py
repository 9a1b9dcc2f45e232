"""Geometry schema 0x14.

All streams of a piece share one stride. Skinning is stored inline: two
u32 words per vertex, one holding up to four bone indices and one up to four
weights, slot 0 in the least significant byte. The bone width is global
(``weight_width`` in the header) and at most four influences exist per
vertex.
"""

from ..model.entities import BONE_COUNT, Piece
from .pmg_constants import (
    ABSENT, HEADER_0x14, PIECE_0x14, PMG_TAG_0x14, PMG_VERSION_0x14,
    BONE_WORDS_SIZE,
)
from .pmg_reader import GeometryDecoder, ParsedGeometry, register_decoder

PACKED_INFLUENCES = 4


def unpack_influences(word, signed=False):
    """Split a packed u32 into four 8-bit slots, slot 0 = lowest byte.

    Bone indices are signed (0xFF is -1, an empty slot); weights are not.
    """
    slots = [(word >> (8 * slot)) & 0xFF for slot in range(PACKED_INFLUENCES)]
    if signed:
        return [s - 0x100 if s > 0x7F else s for s in slots]
    return slots


@register_decoder
class Pmg14Decoder(GeometryDecoder):
    VERSION = PMG_VERSION_0x14
    TAG = PMG_TAG_0x14
    HEADER = HEADER_0x14

    def decode(self) -> ParsedGeometry:
        header = self.read_header()
        geometry = ParsedGeometry(self.VERSION)

        geometry.bones = self.read_bones(header.skeleton_offset, header.bone_count)
        geometry.parts = self.read_parts(header.parts_offset, header.part_count)
        geometry.locators = self.read_locators(
            header.locators_offset, header.locator_count,
            header.string_pool_offset, header.string_pool_size,
        )

        for i in range(header.piece_count):
            rec = self.view.read_record(PIECE_0x14, header.pieces_offset + i * PIECE_0x14.size)
            geometry.add_piece(self._read_piece(i, rec, header.weight_width))
        return geometry

    def _read_piece(self, index, rec, weight_width):
        piece = Piece(index)
        piece.texcoord_mask = rec.texcoord_mask
        piece.texcoord_count = rec.texcoord_width
        piece.bones = weight_width
        piece.material = rec.material
        self.check_bone_width(piece)
        self.check_vertex_count(piece, rec.verts)

        offsets = (
            rec.vert_position_offset, rec.vert_normal_offset, rec.vert_tangent_offset,
            rec.vert_texcoord_offset, rec.vert_color_offset, rec.vert_color2_offset,
        )
        static_size, dynamic_size = self.enable_streams(piece, *offsets)
        stride = static_size + dynamic_size
        if rec.vert_bone_index_offset != ABSENT:
            stride += BONE_WORDS_SIZE

        skinned = (rec.vert_bone_index_offset != ABSENT
                   and rec.vert_bone_weight_offset != ABSENT)
        for j in range(rec.verts):
            vert = self.read_vertex(piece, j, offsets, stride, stride)
            if skinned:
                self._read_packed_skin(vert, rec, j * stride)
            piece.vertices.append(vert)

        piece.triangles = self.read_triangles(rec.index_offset, rec.edges)
        return piece

    def _read_packed_skin(self, vert, rec, vertex_offset):
        indices = unpack_influences(
            self.view.read_u32(rec.vert_bone_index_offset + vertex_offset), signed=True)
        weights = unpack_influences(self.view.read_u32(rec.vert_bone_weight_offset + vertex_offset))
        vert.bone_index[:PACKED_INFLUENCES] = indices
        vert.bone_weight[:PACKED_INFLUENCES] = weights
        for k in range(PACKED_INFLUENCES, BONE_COUNT):
            vert.bone_index[k] = -1
            vert.bone_weight[k] = 0
