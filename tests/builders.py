"""Synthetic .pmg / .pmd buffers for the tests.

Layout of a built geometry file:
    header | bones | parts | locators | string pool | piece table | piece data

Vertex streams are interleaved the way the decoders expect: unskinned 0x13
pieces and all 0x14 pieces use one pool, skinned 0x13 pieces split
position/normal/tangent and texcoord/color into two pools.
"""

import struct
from dataclasses import dataclass, field
from typing import List, Optional

from pix_converter.model.entities import IDENTITY_MATRIX
from pix_converter.pmd_format.pmd_reader import (
    ATTRIB_DEF, ATTRIB_LINK, PMD_HEADER, PMD_SUPPORTED_VERSION,
)
from pix_converter.pmg_format.pmg_constants import (
    ABSENT, BONE, HEADER_0x13, HEADER_0x14, LOCATOR, PART, PIECE_0x13, PIECE_0x14,
    PMG_SIGNATURE, PMG_VERSION_0x13, PMG_VERSION_0x14, TRIANGLE,
)
from pix_converter.utils.token import string_to_token


@dataclass
class PieceData:
    positions: Optional[list]
    normals: Optional[list] = None
    tangents: Optional[list] = None     # file order: x, y, z, w
    uvs: Optional[list] = None          # per vertex: [(u, v), ...] per channel
    colors: Optional[list] = None       # rgba bytes
    colors2: Optional[list] = None
    triangles: list = field(default_factory=list)
    edges: Optional[int] = None         # defaults to 3 * len(triangles)
    verts: Optional[int] = None         # declared vertex count, defaults to len(positions)
    material: int = 0
    uv_mask: int = 0
    bone_count: int = 0                 # 0x13 only
    binds: Optional[list] = None        # 0x13: bind index per vertex
    bind_bones: Optional[list] = None   # 0x13: one row of bone_count i8 per bind
    bind_weights: Optional[list] = None
    bone_words: Optional[list] = None   # 0x14: (index word, weight word) per vertex


def bone(name, parent=-1, transformation=IDENTITY_MATRIX):
    return BONE.pack(
        name=string_to_token(name),
        transformation=transformation,
        transformation_reversed=IDENTITY_MATRIX,
        stretch=(1.0, 0.0, 0.0, 0.0),
        rotation=(1.0, 0.0, 0.0, 0.0),
        translation=(0.0, 0.0, 0.0),
        scale=(1.0, 1.0, 1.0),
        sign_of_determinant=1.0,
        parent=parent,
    )


def part(name, piece_index=0, piece_count=0, locator_index=0, locator_count=0):
    return PART.pack(
        name=string_to_token(name),
        piece_index=piece_index, piece_count=piece_count,
        locator_index=locator_index, locator_count=locator_count,
    )


def locator(name, hookup_offset=ABSENT, position=(0.0, 0.0, 0.0),
            rotation=(1.0, 0.0, 0.0, 0.0), scale=1.0):
    return LOCATOR.pack(
        name=string_to_token(name), position=position, scale=scale,
        rotation=rotation, hookup_offset=hookup_offset,
    )


class Blob:
    def __init__(self, reserve=0):
        self.data = bytearray(reserve)

    def add(self, raw):
        offset = len(self.data)
        self.data += raw
        return offset

    def put(self, offset, raw):
        self.data[offset:offset + len(raw)] = raw


def interleave(columns, count):
    """Interleave ``(key, struct code, values or None)`` columns.

    Returns (bytes, {key: relative offset or ABSENT}, stride).
    """
    offsets = {}
    present = []
    stride = 0
    for key, code, values in columns:
        if values is None:
            offsets[key] = ABSENT
            continue
        packer = struct.Struct("<" + code)
        offsets[key] = stride
        present.append((packer, values))
        stride += packer.size
    raw = bytearray()
    for j in range(count):
        for packer, values in present:
            value = values[j]
            raw += packer.pack(*value) if isinstance(value, (tuple, list)) else packer.pack(value)
    return bytes(raw), offsets, stride


def _rebase(offsets, base):
    return {k: (v if v == ABSENT else base + v) for k, v in offsets.items()}


def _uv_column(piece):
    if not piece.uvs:
        return 0, None
    channels = len(piece.uvs[0])
    values = [tuple(c for uv in vert for c in uv) for vert in piece.uvs]
    return channels, values


def _triangles(blob, piece):
    raw = b"".join(TRIANGLE.pack(indices=t) for t in piece.triangles)
    offset = blob.add(raw)
    edges = piece.edges if piece.edges is not None else 3 * len(piece.triangles)
    return offset, edges


def _tables(blob, bones, parts, locators, string_pool):
    bone_offset = blob.add(b"".join(bones))
    part_offset = blob.add(b"".join(parts))
    locator_offset = blob.add(b"".join(locators))
    pool_offset = blob.add(string_pool)
    return bone_offset, part_offset, locator_offset, pool_offset


def _piece_0x13(blob, piece):
    n = len(piece.positions or ())
    channels, uv_values = _uv_column(piece)
    static = [
        ("position", "3f", piece.positions),
        ("normal", "3f", piece.normals),
        ("tangent", "4f", piece.tangents),
    ]
    dynamic = [
        ("uv", f"{2 * channels}f", uv_values),
        ("color", "4B", piece.colors),
        ("color2", "4B", piece.colors2),
    ]
    if piece.bone_count == 0:
        raw, offsets, _ = interleave(static + dynamic, n)
        offsets = _rebase(offsets, blob.add(raw))
    else:
        raw, static_offsets, _ = interleave(static, n)
        offsets = _rebase(static_offsets, blob.add(raw))
        raw, dynamic_offsets, _ = interleave(dynamic, n)
        offsets.update(_rebase(dynamic_offsets, blob.add(raw)))

    bind = bind_bones = bind_weights = ABSENT
    if piece.binds is not None:
        bind = blob.add(struct.pack(f"<{n}H", *piece.binds))
        flat_bones = [b for row in piece.bind_bones for b in row]
        flat_weights = [w for row in piece.bind_weights for w in row]
        bind_bones = blob.add(struct.pack(f"<{len(flat_bones)}b", *flat_bones))
        bind_weights = blob.add(struct.pack(f"<{len(flat_weights)}B", *flat_weights))

    triangle_offset, edges = _triangles(blob, piece)
    return PIECE_0x13.pack(
        edges=edges, verts=n if piece.verts is None else piece.verts,
        uv_mask=piece.uv_mask, uv_channels=channels,
        bone_count=piece.bone_count, material=piece.material,
        vert_position_offset=offsets["position"],
        vert_normal_offset=offsets["normal"],
        vert_uv_offset=offsets["uv"],
        vert_rgba_offset=offsets["color"],
        vert_rgba2_offset=offsets["color2"],
        vert_tangent_offset=offsets["tangent"],
        triangle_offset=triangle_offset,
        anim_bind_offset=bind,
        anim_bind_bones_offset=bind_bones,
        anim_bind_bones_weight_offset=bind_weights,
    )


def build_pmg_0x13(pieces=(), bones=(), parts=(), locators=(), string_pool=b"",
                   version=PMG_VERSION_0x13):
    blob = Blob(HEADER_0x13.size)
    bone_offset, part_offset, locator_offset, pool_offset = _tables(
        blob, bones, parts, locators, string_pool)
    piece_offset = blob.add(bytes(PIECE_0x13.size * len(pieces)))
    for i, piece in enumerate(pieces):
        blob.put(piece_offset + i * PIECE_0x13.size, _piece_0x13(blob, piece))
    blob.put(0, HEADER_0x13.pack(
        version=version, signature=PMG_SIGNATURE,
        piece_count=len(pieces), part_count=len(parts),
        bone_count=len(bones), locator_count=len(locators),
        bone_offset=bone_offset, part_offset=part_offset,
        locator_offset=locator_offset, piece_offset=piece_offset,
        locator_name_offset=pool_offset, locator_name_size=len(string_pool),
        anim_bind_offset=ABSENT, geometry_offset=piece_offset,
        geometry_size=len(blob.data) - piece_offset,
    ))
    return bytes(blob.data)


def _piece_0x14(blob, piece):
    n = len(piece.positions or ())
    channels, uv_values = _uv_column(piece)
    words = piece.bone_words
    columns = [
        ("position", "3f", piece.positions),
        ("normal", "3f", piece.normals),
        ("tangent", "4f", piece.tangents),
        ("uv", f"{2 * channels}f", uv_values),
        ("color", "4B", piece.colors),
        ("color2", "4B", piece.colors2),
        ("bone_index", "I", [w[0] for w in words] if words else None),
        ("bone_weight", "I", [w[1] for w in words] if words else None),
    ]
    raw, offsets, _ = interleave(columns, n)
    offsets = _rebase(offsets, blob.add(raw))
    index_offset, edges = _triangles(blob, piece)
    return PIECE_0x14.pack(
        edges=edges, verts=n if piece.verts is None else piece.verts,
        texcoord_mask=piece.uv_mask, texcoord_width=channels,
        material=piece.material,
        vert_position_offset=offsets["position"],
        vert_normal_offset=offsets["normal"],
        vert_texcoord_offset=offsets["uv"],
        vert_color_offset=offsets["color"],
        vert_color2_offset=offsets["color2"],
        vert_tangent_offset=offsets["tangent"],
        vert_bone_index_offset=offsets["bone_index"],
        vert_bone_weight_offset=offsets["bone_weight"],
        index_offset=index_offset,
    )


def build_pmg_0x14(pieces=(), bones=(), parts=(), locators=(), string_pool=b"",
                   weight_width=0, version=PMG_VERSION_0x14):
    blob = Blob(HEADER_0x14.size)
    bone_offset, part_offset, locator_offset, pool_offset = _tables(
        blob, bones, parts, locators, string_pool)
    piece_offset = blob.add(bytes(PIECE_0x14.size * len(pieces)))
    for i, piece in enumerate(pieces):
        blob.put(piece_offset + i * PIECE_0x14.size, _piece_0x14(blob, piece))
    blob.put(0, HEADER_0x14.pack(
        version=version, signature=PMG_SIGNATURE,
        piece_count=len(pieces), part_count=len(parts),
        bone_count=len(bones), weight_width=weight_width,
        locator_count=len(locators),
        skeleton_offset=bone_offset, parts_offset=part_offset,
        locators_offset=locator_offset, pieces_offset=piece_offset,
        string_pool_offset=pool_offset, string_pool_size=len(string_pool),
        vertex_pool_offset=piece_offset,
        vertex_pool_size=len(blob.data) - piece_offset,
        index_pool_offset=ABSENT,
    ))
    return bytes(blob.data)


def build_pmd(looks=("default",), materials=((),), variants=(), part_links=(),
              attribs=(), values=(), version=PMD_SUPPORTED_VERSION):
    """Build a descriptor.

    Args:
        looks: look names
        materials: per look, the material path of every slot
        variants: variant names
        part_links: per model part, the (first, last) attribute definition range
        attribs: (name, type, byte offset in the value block) per definition
        values: per variant, the i32 words of its value block
    """
    material_count = len(materials[0]) if materials else 0
    values_size = 4 * len(values[0]) if values else 0

    blob = Blob(PMD_HEADER.size)
    look_offset = blob.add(b"".join(struct.pack("<Q", string_to_token(n)) for n in looks))
    variant_offset = blob.add(b"".join(struct.pack("<Q", string_to_token(n)) for n in variants))
    part_attribs_offset = blob.add(b"".join(
        ATTRIB_LINK.pack(first=first, last=last) for first, last in part_links))
    attribs_offset = blob.add(b"".join(
        ATTRIB_DEF.pack(name=string_to_token(name), type=kind, offset=offset)
        for name, kind, offset in attribs))
    attribs_value_offset = blob.add(b"".join(
        struct.pack(f"<{len(block)}i", *block) for block in values))

    material_offset = blob.add(bytes(4 * material_count * len(looks)))
    material_data_offset = len(blob.data)
    for i, look_materials in enumerate(materials):
        for j, path in enumerate(look_materials):
            string_offset = blob.add(path.encode("utf-8") + b"\0")
            blob.put(material_offset + 4 * (i * material_count + j),
                     struct.pack("<I", string_offset))

    blob.put(0, PMD_HEADER.pack(
        version=version, material_count=material_count,
        look_count=len(looks), part_count=len(part_links),
        variant_count=len(variants), part_attribs_count=len(part_links),
        attribs_count=len(attribs), attribs_values_size=values_size,
        material_block_size=len(blob.data) - material_data_offset,
        look_offset=look_offset, variant_offset=variant_offset,
        part_attribs_offset=part_attribs_offset,
        attribs_value_offset=attribs_value_offset,
        attribs_offset=attribs_offset, material_offset=material_offset,
        material_data_offset=material_data_offset,
    ))
    return bytes(blob.data)


def quad_piece(material=0) -> PieceData:
    """One unskinned quad: 4 vertices with position and normal, 2 triangles."""
    return PieceData(
        positions=[(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (1.0, 1.0, 0.0), (0.0, 1.0, 0.0)],
        normals=[(0.0, 0.0, 1.0)] * 4,
        triangles=[(0, 1, 2), (0, 2, 3)],
        material=material,
    )


MATERIAL_TEXT = """material : "eut2.dif.spec" {
    texture : "cab.tobj"
    texture_name : "texture_base"
    diffuse : { 1.0 , 0.5 , 0.25 }
}
"""


def write_files(root, files) -> List[str]:
    """Write ``{logical path: bytes or str}`` under ``root``."""
    written = []
    for logical, content in files.items():
        target = root.joinpath(*logical.strip("/").split("/"))
        target.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, str):
            target.write_text(content, encoding="utf-8")
        else:
            target.write_bytes(content)
        written.append(str(target))
    return written


MODEL_PATH = "/vehicle/truck/cab"


def quad_model_files():
    """Unskinned single quad with one look, one material and one part."""
    return {
        MODEL_PATH + ".pmd": build_pmd(
            looks=("default",),
            materials=(("/vehicle/truck/cab.mat",),),
            variants=("default",),
            part_links=((0, 1),),
            attribs=(("visible", 0, 0),),
            values=((1,),),
        ),
        MODEL_PATH + ".pmg": build_pmg_0x13(
            pieces=[quad_piece()],
            parts=[part("body", piece_index=0, piece_count=1,
                        locator_index=0, locator_count=1)],
            locators=[locator("door", hookup_offset=0, position=(0.5, 0.0, 0.0))],
            string_pool=b"door_hook\0",
        ),
        "/vehicle/truck/cab.mat": MATERIAL_TEXT,
    }


def skinned_model_files():
    """Two bones, one skinned piece of three vertices."""
    piece = PieceData(
        positions=[(0.0, 0.0, 0.0), (1.0, 0.0, 0.0), (0.0, 1.0, 0.0)],
        uvs=[[(0.0, 0.0)], [(1.0, 0.0)], [(0.0, 1.0)]],
        triangles=[(0, 1, 2)],
        bone_count=2,
        binds=[0, 0, 1],
        bind_bones=[[0, 1], [1, -1]],
        bind_weights=[[128, 127], [255, 0]],
    )
    return {
        MODEL_PATH + ".pmd": build_pmd(materials=(("/vehicle/truck/cab.mat",),)),
        MODEL_PATH + ".pmg": build_pmg_0x13(
            pieces=[piece],
            bones=[bone("root"), bone("arm", parent=0)],
            parts=[part("body", piece_count=1)],
        ),
        "/vehicle/truck/cab.mat": MATERIAL_TEXT,
    }
