"""Trait artifact (.pit): looks with full material definitions, and variants
with the attribute values of every model part."""

from .. import STRING_VERSION
from .mid_writer import MidWriter

PIT_FORMAT_VERSION = 1


def _write_attribute(w, attribute):
    w.open_block("Attribute")
    w.field("Format", attribute.format_name)
    w.string("Tag", attribute.name)
    w.field("Value", f"( {attribute.value} )")
    w.close_block()


def pit_text(model):
    w = MidWriter()
    w.header(PIT_FORMAT_VERSION, STRING_VERSION, "Trait", model.file_name)
    w.block("Global", [
        ("LookCount", len(model.looks)),
        ("VariantCount", len(model.variants)),
        ("PartCount", len(model.parts)),
        ("MaterialCount", model.material_count),
    ])

    for look in model.looks:
        w.open_block("Look")
        w.string("Name", look.name)
        for material in look.materials:
            w.raw(material.to_definition("\t"))
        w.close_block()

    for variant in model.variants:
        w.open_block("Variant")
        w.string("Name", variant.name)
        for i, part in enumerate(model.parts):
            attributes = variant[i].attributes if i < len(variant.parts) else []
            w.open_block("Part")
            w.string("Name", part.name)
            w.field("AttributeCount", len(attributes))
            for attribute in attributes:
                _write_attribute(w, attribute)
            w.close_block()
        w.close_block()
    return w.build()
