"""Prism model descriptor (.pmd) reader.

The descriptor holds everything about a model that is not geometry:

    look_offset            u64 token per look
    variant_offset         u64 token per variant
    material_offset        u32 per (look, slot): offset of a NUL-terminated
                           material path, row-major by look
    part_attribs_offset    [from, to) range per part into the attribute
                           definition table
    attribs_offset         attribute definitions (token name, type, offset)
    attribs_value_offset   value pool; the value of definition d for
                           variant v lives at d.offset + v * attribs_values_size

Only version 0x04 is supported.
"""

import logging
from typing import Callable, List

from ..errors import FormatError
from ..model.entities import ATTRIBUTE_INT, Attribute, Look, Variant, VariantPart
from ..utils.binary_reader import BinaryView, RecordLayout
from ..utils.token import token_to_string

_log = logging.getLogger("pix_pmd")


PMD_SUPPORTED_VERSION = 0x04

TOKEN_SIZE = 8
MATERIAL_REF_SIZE = 4

PMD_HEADER = RecordLayout("PmdHeader", [
    ("version", "I"),
    ("material_count", "I"),
    ("look_count", "I"),
    ("part_count", "I"),
    ("variant_count", "I"),
    ("part_attribs_count", "I"),
    ("attribs_count", "I"),
    ("attribs_values_size", "I"),
    ("material_block_size", "I"),
    ("look_offset", "I"),
    ("variant_offset", "I"),
    ("part_attribs_offset", "I"),
    ("attribs_value_offset", "I"),
    ("attribs_offset", "I"),
    ("material_offset", "I"),
    ("material_data_offset", "I"),
])

ATTRIB_LINK = RecordLayout("PmdAttribLink", [
    ("first", "i"),
    ("last", "i"),      # exclusive
])

ATTRIB_DEF = RecordLayout("PmdAttribDef", [
    ("name", "Q"),
    ("type", "i"),
    ("offset", "i"),
])


class ParsedDescriptor:
    __slots__ = ('material_count', 'part_count', 'looks', 'variants')

    def __init__(self, material_count=0, part_count=0):
        self.material_count = material_count
        self.part_count = part_count
        self.looks: List[Look] = []
        self.variants: List[Variant] = []

    def __repr__(self):
        return (
            f"ParsedDescriptor(materials={self.material_count}, "
            f"looks={len(self.looks)}, variants={len(self.variants)})"
        )


def material_alias(slot, material):
    """Alias for ``slot`` on the first look: mat_0003_<texture stem>."""
    if material.textures:
        name = material.textures[0].path[:-5]
        name = name.rpartition("/")[2]
        return f"mat_{slot:04d}_{name}"
    return f"mat_{slot:04d}"


class DescriptorReader:
    """Decodes a .pmd buffer.

    Args:
        data: the complete file contents
        directory: logical directory of the model, for relative material paths
        load_material: callable(path) -> Material
        source: file name used in diagnostics
    """

    def __init__(self, data, directory, load_material: Callable, source="<buffer>"):
        self.view = data if isinstance(data, BinaryView) else BinaryView(data)
        self.directory = directory
        self.load_material = load_material
        self.source = source

    def read(self) -> ParsedDescriptor:
        header = self.view.read_record(PMD_HEADER, 0)
        if header.version != PMD_SUPPORTED_VERSION:
            raise FormatError(
                f"Invalid version of descriptor file \"{self.source}\" "
                f"(have: {header.version}, expected: {PMD_SUPPORTED_VERSION})",
                expected=PMD_SUPPORTED_VERSION,
                actual=header.version,
            )

        result = ParsedDescriptor(header.material_count, header.part_count)
        result.looks = self._read_looks(header)
        result.variants = self._read_variants(header)
        return result

    def _resolve(self, path):
        if path.startswith("/"):
            return path
        return f"{self.directory}/{path}"

    def _read_looks(self, header):
        view = self.view
        count = header.material_count
        looks = []
        for i in range(header.look_count):
            look = Look(token_to_string(view.read_u64(header.look_offset + i * TOKEN_SIZE)))
            for j in range(count):
                ref = header.material_offset + (i * count + j) * MATERIAL_REF_SIZE
                path = view.read_cstring(view.read_u32(ref))
                material = self.load_material(self._resolve(path))
                # Aliases are shared by every look: slot j keeps look 0's name
                if i == 0:
                    material.alias = material_alias(j, material)
                else:
                    material.alias = looks[0].materials[j].alias
                look.materials.append(material)
            looks.append(look)
        return looks

    def _read_variants(self, header):
        view = self.view
        variants = []
        for i in range(header.variant_count):
            variant = Variant(token_to_string(view.read_u64(header.variant_offset + i * TOKEN_SIZE)))
            for j in range(header.part_count):
                link = view.read_record(ATTRIB_LINK, header.part_attribs_offset + j * ATTRIB_LINK.size)
                part = VariantPart()
                for k in range(link.first, link.last):
                    attribute = self._read_attribute(header, k, i)
                    if attribute is not None:
                        part.attributes.append(attribute)
                variant.parts.append(part)
            variants.append(variant)
        return variants

    def _read_attribute(self, header, definition_index, variant_index):
        definition = self.view.read_record(
            ATTRIB_DEF, header.attribs_offset + definition_index * ATTRIB_DEF.size
        )
        name = token_to_string(definition.name)
        if definition.type != ATTRIBUTE_INT:
            _log.warning("%s: invalid attribute type <%d> of \"%s\", attribute skipped",
                         self.source, definition.type, name)
            return None
        value_offset = (header.attribs_value_offset + definition.offset
                        + variant_index * header.attribs_values_size)
        return Attribute(name, ATTRIBUTE_INT, self.view.read_i32(value_offset))
