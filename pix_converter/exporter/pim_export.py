"""Geometry artifact (.pim).

Block order:
    Header, Global, Material (declaration per slot, first look only),
    Piece (Stream per attribute + Triangles) per piece, Part per part,
    Locator per locator, Bones (if any), Skin (if any piece is skinned).
"""

from .. import STRING_VERSION
from .mid_writer import MidWriter, vec_str, flh

PIM_FORMAT_VERSION = 5
SKELETON_EXT = ".pis"


def _write_stream(w, fmt, tag, values):
    w.open_block("Stream")
    w.field("Format", fmt)
    w.string("Tag", tag)
    for j, value in enumerate(values):
        w.line(f"{j:<5d}( {vec_str(value)} )")
    w.close_block()


def _write_piece(w, piece):
    w.open_block("Piece")
    w.field("Index", piece.index)
    w.field("Material", piece.material)
    w.field("VertexCount", len(piece.vertices))
    w.field("TriangleCount", len(piece.triangles))
    w.field("StreamCount", piece.stream_count)

    verts = piece.vertices
    if piece.position:
        _write_stream(w, "FLOAT3", "_POSITION", (v.position for v in verts))
    if piece.normal:
        _write_stream(w, "FLOAT3", "_NORMAL", (v.normal for v in verts))
    if piece.tangent:
        _write_stream(w, "FLOAT4", "_TANGENT", (v.tangent for v in verts))
    if piece.texcoord:
        for channel in range(piece.texcoord_count):
            aliases = piece.texcoord_aliases(channel)
            w.open_block("Stream")
            w.field("Format", "FLOAT2")
            w.string("Tag", f"_UV{channel}")
            w.field("AliasCount", len(aliases))
            w.field("Aliases", "".join(f'"_TEXCOORD{a}" ' for a in aliases))
            for k, vert in enumerate(verts):
                w.line(f"{k:<5d}( {vec_str(vert.texcoords[channel])} )")
            w.close_block()
    if piece.color:
        _write_stream(w, "FLOAT4", "_RGBA", (v.color for v in verts))

    w.open_block("Triangles")
    for j, (a, b, c) in enumerate(piece.triangles):
        w.line(f"{j:<5d}( {a:<5d} {b:<5d} {c:<5d} )")
    w.close_block()
    w.close_block()


def _write_part(w, part):
    w.open_block("Part")
    w.string("Name", part.name)
    w.field("PieceCount", part.piece_count)
    w.field("LocatorCount", part.locator_count)
    w.field("Pieces", "".join(f"{i} " for i in part.pieces))
    w.field("Locators", "".join(f"{i} " for i in part.locators))
    w.close_block()


def _write_locator(w, locator):
    w.open_block("Locator")
    w.string("Name", locator.name)
    if locator.hookup:
        w.string("Hookup", locator.hookup)
    w.field("Index", locator.index)
    w.vector("Position", locator.position)
    w.vector("Rotation", locator.rotation)
    w.vector("Scale", locator.scale)
    w.close_block()


def _skin_items(model):
    """Per skinned vertex: (lines, weight count). Clones are never merged."""
    items = []
    for i, piece in enumerate(model.pieces):
        if piece.bones == 0:
            continue
        for j, vert in enumerate(piece.vertices):
            influences = vert.influences(piece.bones)
            weights = "".join(f"{bone:<4d} {flh(weight / 255.0)} " for bone, weight in influences)
            lines = [
                f"{len(items):<6d}( ( {vec_str(vert.position)} )",
                f"\t\tWeights: {len(influences):<6d} {weights}",
                f"\t\tClones: {1:<6d} {i:<4d} {j:<6d}",
                "      )",
            ]
            items.append((lines, len(influences)))
    return items


def _write_skin(w, model):
    items = _skin_items(model)
    w.open_block("Skin")
    w.field("StreamCount", 1)
    w.open_block("SkinStream")
    w.field("Format", "FLOAT3")
    w.string("Tag", "_POSITION")
    w.field("ItemCount", len(items))
    w.field("TotalWeightCount", sum(count for _lines, count in items))
    w.field("TotalCloneCount", len(items))
    for lines, _count in items:
        for line in lines:
            w.line(line)
    w.close_block()
    w.close_block()


def pim_text(model):
    w = MidWriter()
    w.header(PIM_FORMAT_VERSION, STRING_VERSION, "Model", model.file_name)
    w.block("Global", [
        ("VertexCount", model.vert_count),
        ("TriangleCount", model.triangle_count),
        ("MaterialCount", model.material_count),
        ("PieceCount", len(model.pieces)),
        ("PartCount", len(model.parts)),
        ("BoneCount", len(model.bones)),
        ("LocatorCount", len(model.locators)),
        ("Skeleton", f'"{model.file_name}{SKELETON_EXT}"'),
    ])

    if model.looks:
        for material in model.looks[0].materials[:model.material_count]:
            w.raw(material.to_declaration())

    for piece in model.pieces:
        _write_piece(w, piece)
    for part in model.parts:
        _write_part(w, part)
    for locator in model.locators:
        _write_locator(w, locator)

    if model.bones:
        w.open_block("Bones")
        for i, bone in enumerate(model.bones):
            w.line(f'{i:<5d}( "{bone.name}" )')
        w.close_block()

    if model.skin_vert_count > 0:
        _write_skin(w, model)
    return w.build()
