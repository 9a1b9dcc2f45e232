"""Skeleton artifact (.pis). Only written for models with bones."""

from .. import STRING_VERSION
from .mid_writer import MidWriter, vec_str

PIS_FORMAT_VERSION = 1

_MATRIX_PAD = "             "


def pis_text(model):
    """Skeleton text, or None when the model has no bones."""
    if not model.bones:
        return None

    w = MidWriter()
    w.header(PIS_FORMAT_VERSION, STRING_VERSION, "Skeleton", model.file_name)
    w.block("Global", [("BoneCount", len(model.bones))])

    w.open_block("Bones")
    for i, bone in enumerate(model.bones):
        rows = [vec_str(row) for row in bone.matrix_rows()]
        w.line(f'{i:<5d} ( Name:  "{bone.name}"')
        w.line(f'\t   Parent: "{model.bone_name(bone.parent)}"')
        w.line(f"\t   Matrix: ( {rows[0]}")
        w.line(f"\t{_MATRIX_PAD}{rows[1]}")
        w.line(f"\t{_MATRIX_PAD}{rows[2]}")
        w.line(f"\t{_MATRIX_PAD}{rows[3]} )")
        w.line("  )")
    w.close_block()
    return w.build()
