"""Constants and record layouts for the prism geometry (.pmg) format.

Two schemas exist, told apart by the first byte of the 4-byte tag:

  0x13 "\\x13gmP": per-piece bone width, skin weights deduplicated in a
                  bind table indexed by a u16 per vertex.
  0x14 "\\x14gmP": global weight width, up to four influences packed into
                  two u32 words stored inline with each vertex.

All records are packed little-endian. Offsets are absolute from the start
of the file and -1 marks an absent table or stream.
"""

from ..utils.binary_reader import RecordLayout


PMG_SIGNATURE = b"gmP"

PMG_VERSION_0x13 = 0x13
PMG_VERSION_0x14 = 0x14


def make_fourcc(version, signature=PMG_SIGNATURE):
    """u32 tag as read from the first four bytes of a .pmg file."""
    return version | (signature[0] << 8) | (signature[1] << 16) | (signature[2] << 24)


PMG_TAG_0x13 = make_fourcc(PMG_VERSION_0x13)
PMG_TAG_0x14 = make_fourcc(PMG_VERSION_0x14)

ABSENT = -1

# Per-vertex stream sizes in bytes
POSITION_SIZE = 12     # float3
NORMAL_SIZE = 12       # float3
TANGENT_SIZE = 16      # float4
TEXCOORD_SIZE = 8      # float2 per channel
COLOR_SIZE = 4         # rgba8
BONE_WORDS_SIZE = 8    # two packed u32 (v2 only)
TRIANGLE_SIZE = 6      # 3 x u16
BIND_INDEX_SIZE = 2    # u16 (v1 only)

_BBOX = [
    ("bb_center", "3f"),
    ("bb_diagonal", "f"),
    ("bb_min", "3f"),
    ("bb_max", "3f"),
]

# ---------------------------------------------------------------------------
# Records shared by both schemas
# ---------------------------------------------------------------------------

BONE = RecordLayout("PmgBone", [
    ("name", "Q"),
    ("transformation", "16f"),
    ("transformation_reversed", "16f"),
    ("stretch", "4f"),
    ("rotation", "4f"),
    ("translation", "3f"),
    ("scale", "3f"),
    ("sign_of_determinant", "f"),
    ("parent", "b"),
    ("_pad", "3x"),
])

PART = RecordLayout("PmgPart", [
    ("name", "Q"),
    ("piece_count", "i"),
    ("piece_index", "i"),
    ("locator_count", "i"),
    ("locator_index", "i"),
])

LOCATOR = RecordLayout("PmgLocator", [
    ("name", "Q"),
    ("position", "3f"),
    ("scale", "f"),
    ("rotation", "4f"),
    ("hookup_offset", "i"),
])

TANGENT = RecordLayout("PmgTangent", [
    ("x", "f"), ("y", "f"), ("z", "f"), ("w", "f"),
])

COLOR = RecordLayout("PmgColor", [
    ("r", "B"), ("g", "B"), ("b", "B"), ("a", "B"),
])

TRIANGLE = RecordLayout("PmgTriangle", [
    ("indices", "3H"),
])

# ---------------------------------------------------------------------------
# Schema 0x13
# ---------------------------------------------------------------------------

HEADER_0x13 = RecordLayout("PmgHeader0x13", [
    ("version", "B"),
    ("signature", "3s"),
    ("piece_count", "i"),
    ("part_count", "i"),
    ("bone_count", "i"),
    ("locator_count", "i"),
    ("skeleton_hash", "Q"),
    *_BBOX,
    ("bone_offset", "i"),
    ("part_offset", "i"),
    ("locator_offset", "i"),
    ("piece_offset", "i"),
    ("locator_name_offset", "i"),
    ("locator_name_size", "i"),
    ("anim_bind_offset", "i"),
    ("anim_bind_size", "i"),
    ("geometry_offset", "i"),
    ("geometry_size", "i"),
])

PIECE_0x13 = RecordLayout("PmgPiece0x13", [
    ("edges", "i"),
    ("verts", "i"),
    ("uv_mask", "I"),
    ("uv_channels", "i"),
    ("bone_count", "i"),
    ("material", "i"),
    *_BBOX,
    ("vert_position_offset", "i"),
    ("vert_normal_offset", "i"),
    ("vert_uv_offset", "i"),
    ("vert_rgba_offset", "i"),
    ("vert_rgba2_offset", "i"),
    ("vert_tangent_offset", "i"),
    ("triangle_offset", "i"),
    ("anim_bind_offset", "i"),
    ("anim_bind_bones_offset", "i"),
    ("anim_bind_bones_weight_offset", "i"),
])

# ---------------------------------------------------------------------------
# Schema 0x14
# ---------------------------------------------------------------------------

HEADER_0x14 = RecordLayout("PmgHeader0x14", [
    ("version", "B"),
    ("signature", "3s"),
    ("piece_count", "i"),
    ("part_count", "i"),
    ("bone_count", "i"),
    ("weight_width", "i"),
    ("locator_count", "i"),
    ("skeleton_hash", "Q"),
    *_BBOX,
    ("skeleton_offset", "i"),
    ("parts_offset", "i"),
    ("locators_offset", "i"),
    ("pieces_offset", "i"),
    ("string_pool_offset", "i"),
    ("string_pool_size", "i"),
    ("vertex_pool_offset", "i"),
    ("vertex_pool_size", "i"),
    ("index_pool_offset", "i"),
    ("index_pool_size", "i"),
])

PIECE_0x14 = RecordLayout("PmgPiece0x14", [
    ("edges", "i"),
    ("verts", "i"),
    ("texcoord_mask", "I"),
    ("texcoord_width", "i"),
    ("material", "i"),
    *_BBOX,
    ("vert_position_offset", "i"),
    ("vert_normal_offset", "i"),
    ("vert_texcoord_offset", "i"),
    ("vert_color_offset", "i"),
    ("vert_color2_offset", "i"),
    ("vert_tangent_offset", "i"),
    ("vert_bone_index_offset", "i"),
    ("vert_bone_weight_offset", "i"),
    ("index_offset", "i"),
])
