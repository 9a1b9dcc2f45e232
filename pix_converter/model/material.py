"""Material definitions (.mat) referenced by the model descriptor.

Supports the two plain-text layouts found in prism data:

    material : "eut2.dif.spec" {
        texture : "/vehicle/truck/cab.tobj"
        texture_name : "texture_base"
        diffuse : { 1.0 , 1.0 , 1.0 }
        shininess : 20
    }

and the indexed one (``texture[0]``, ``texture_name[0]``). Texture paths
without a leading "/" are relative to the material's directory.
"""

import logging
import os
import re

from ..exporter.mid_writer import MidWriter, vec_str

_log = logging.getLogger("pix_material")

_HEADER_RE = re.compile(r'^\s*(?:material|effect)\s*:\s*"([^"]*)"\s*\{?')
_FIELD_RE = re.compile(r'^\s*([A-Za-z_][\w]*)(?:\[(\d+)\])?\s*:\s*(.+?)\s*$')
_NUMBER_RE = re.compile(r'[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?')

TEXTURE_OBJECT_EXT = ".tobj"


class Texture:
    __slots__ = ('name', 'path')

    def __init__(self, name, path):
        self.name = name    # e.g. "texture_base"
        self.path = path    # absolute .tobj path

    @property
    def stem_path(self):
        """Texture path without the .tobj extension."""
        if self.path.endswith(TEXTURE_OBJECT_EXT):
            return self.path[:-len(TEXTURE_OBJECT_EXT)]
        return self.path

    def __repr__(self):
        return f"Texture({self.name!r}, {self.path!r})"


def copy_texture(filesystem, texture, export_root):
    """Default texture conversion: copy the texture object and its .dds."""
    copied = 0
    for source in (texture.path, texture.stem_path + ".dds"):
        if not filesystem.exists(source):
            continue
        target = os.path.join(export_root, *source.strip("/").split("/"))
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "wb") as f:
            f.write(filesystem.read(source))
        copied += 1
    return copied > 0


def _parse_value(text):
    """Return a str for quoted values, a tuple of floats for numbers."""
    text = text.strip()
    if text.startswith('"'):
        return text.strip('"')
    numbers = _NUMBER_RE.findall(text)
    if not numbers:
        return text
    return tuple(float(n) for n in numbers)


class Material:
    """A material loaded from a .mat file. ``alias`` is set by the descriptor."""

    def __init__(self, filesystem=None, texture_converter=copy_texture):
        self.filesystem = filesystem
        self.texture_converter = texture_converter
        self.path = ""
        self.effect = ""
        self.alias = ""
        self.attributes = []    # list of (name, tuple of floats)
        self.textures = []      # list of Texture
        self.loaded = False

    def load(self, path):
        """Parse the .mat file at logical ``path``. Returns False on failure."""
        self.path = path
        try:
            text = self.filesystem.read_text(path)
        except OSError as e:
            _log.warning("Cannot open material file \"%s\": %s", path, e.strerror or e)
            return False
        self.parse(text)
        self.loaded = True
        return True

    def parse(self, text):
        directory = self.path.rpartition("/")[0]
        texture_paths = {}
        texture_names = {}
        for line in text.splitlines():
            header = _HEADER_RE.match(line)
            if header:
                self.effect = header.group(1)
                continue
            match = _FIELD_RE.match(line)
            if match is None:
                continue
            key, index, value = match.group(1), match.group(2), match.group(3)
            slot = int(index) if index is not None else len(texture_paths)
            if key == "texture":
                path = _parse_value(value)
                if not path.startswith("/"):
                    path = f"{directory}/{path}"
                texture_paths[slot] = path
            elif key == "texture_name":
                slot = int(index) if index is not None else len(texture_names)
                texture_names[slot] = _parse_value(value)
            else:
                parsed = _parse_value(value)
                if isinstance(parsed, tuple):
                    self.attributes.append((key, parsed))
        for slot in sorted(texture_paths):
            name = texture_names.get(slot, f"texture_{slot}")
            self.textures.append(Texture(name, texture_paths[slot]))

    # -- mid-format rendering --

    def to_declaration(self):
        w = MidWriter()
        w.open_block("Material")
        w.string("Alias", self.alias)
        w.string("Effect", self.effect)
        w.close_block()
        return w.build()

    def to_definition(self, prefix=""):
        w = MidWriter(prefix)
        w.open_block("Material")
        w.string("Alias", self.alias)
        w.string("Effect", self.effect)
        w.field("Flags", 0)
        w.field("AttributeCount", len(self.attributes))
        for name, values in self.attributes:
            w.open_block("Attribute")
            w.field("Format", "FLOAT" if len(values) == 1 else f"FLOAT{len(values)}")
            w.string("Tag", name)
            w.field("Value", f"( {vec_str(values)} )")
            w.close_block()
        w.field("TextureCount", len(self.textures))
        for i, texture in enumerate(self.textures):
            w.open_block("Texture")
            w.string("Tag", f"texture[{i}]:{texture.name}")
            w.string("Value", texture.stem_path)
            w.close_block()
        w.close_block()
        return w.build()

    def convert_textures(self, export_root):
        converted = 0
        for texture in self.textures:
            if self.texture_converter(self.filesystem, texture, export_root):
                converted += 1
            else:
                _log.warning("Texture \"%s\" of material \"%s\" was not converted",
                             texture.path, self.path)
        return converted

    def __repr__(self):
        return f"Material({self.alias!r}, effect={self.effect!r}, textures={len(self.textures)})"
