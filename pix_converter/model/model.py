"""Model aggregate: owns everything decoded from one prism model.

A model is addressed by its logical path without extension
(``/vehicle/truck/cab``). Loading reads, in order:

    <path>.pmd   descriptor (looks, materials, variants)   mandatory
    <path>.pmg   geometry (bones, parts, locators, pieces)  mandatory
    <path>.ppd   prefab                                     optional
    <path>.pmc   collision                                  optional

A failed mandatory step leaves the model destroyed (empty, not loaded).
Reloading tears down the previous state first.
"""

import logging

from ..errors import FormatError
from ..pmd_format.pmd_reader import DescriptorReader
from ..pmg_format.pmg_reader import read_geometry
from .companions import COLLISION_EXT, PREFAB_EXT
from .material import Material

_log = logging.getLogger("pix_model")

DESCRIPTOR_EXT = ".pmd"
GEOMETRY_EXT = ".pmg"


class Model:

    def __init__(self, filesystem, collision_factory=None, prefab_factory=None,
                 material_factory=None):
        self.filesystem = filesystem
        self.collision_factory = collision_factory
        self.prefab_factory = prefab_factory
        self.material_factory = material_factory or (lambda: Material(filesystem))
        self.collision = None
        self.prefab = None
        self._reset()

    def _reset(self):
        self.bones = []
        self.locators = []
        self.parts = []
        self.pieces = []
        self.looks = []
        self.variants = []
        self.vert_count = 0
        self.triangle_count = 0
        self.skin_vert_count = 0
        self.material_count = 0
        self.loaded = False
        self.file_path = ""
        self.file_name = ""
        self.directory = ""

    def destroy(self):
        """Drop every decoded entity and reset the counters."""
        self._reset()
        self.collision = None
        self.prefab = None

    # -- loading --

    def load(self, file_path):
        """Load the model at logical ``file_path`` (no extension).

        Returns True on success. On failure the error is logged and the model
        is left destroyed.
        """
        if self.loaded:
            self.destroy()

        self.file_path = file_path
        self.directory, _, self.file_name = file_path.rpartition("/")

        if not self._load_descriptor() or not self._load_geometry():
            self.destroy()
            return False

        if self.prefab_factory is not None and self.filesystem.exists(file_path + PREFAB_EXT):
            prefab = self.prefab_factory()
            self.prefab = prefab if prefab.load(file_path) else None
        self._load_collision()

        self.loaded = True
        _log.debug("Loaded %s: %d pieces, %d vertices, %d bones",
                   file_path, len(self.pieces), self.vert_count, len(self.bones))
        return True

    def _read(self, path, kind):
        try:
            return self.filesystem.read(path)
        except OSError as e:
            _log.error("Cannot open %s file: \"%s\"! %s", kind, path, e.strerror or e)
            return None

    def _load_material(self, path):
        material = self.material_factory()
        material.load(path)
        return material

    def _load_descriptor(self):
        path = self.file_path + DESCRIPTOR_EXT
        data = self._read(path, "descriptor")
        if data is None:
            return False
        try:
            descriptor = DescriptorReader(data, self.directory, self._load_material, path).read()
        except FormatError as e:
            _log.error("%s", e)
            return False
        self.material_count = descriptor.material_count
        self.looks = descriptor.looks
        self.variants = descriptor.variants
        return True

    def _load_geometry(self):
        path = self.file_path + GEOMETRY_EXT
        data = self._read(path, "geometry")
        if data is None:
            return False
        try:
            geometry = read_geometry(data, path)
        except FormatError as e:
            _log.error("%s", e)
            return False
        self.bones = geometry.bones
        self.parts = geometry.parts
        self.locators = geometry.locators
        self.pieces = geometry.pieces
        self.vert_count = geometry.vert_count
        self.triangle_count = geometry.triangle_count
        self.skin_vert_count = geometry.skin_vert_count
        return True

    def _load_collision(self):
        if self.collision_factory is None:
            return False
        if not self.filesystem.exists(self.file_path + COLLISION_EXT):
            return False
        collision = self.collision_factory()
        if not collision.load(self, self.file_path):
            _log.warning("Collision of \"%s\" could not be loaded", self.file_path)
            return False
        self.collision = collision
        return True

    # -- queries --

    def bone(self, index):
        """Bone ``index``. Raises IndexError outside ``0 <= index < len(bones)``."""
        if not 0 <= index < len(self.bones):
            raise IndexError(f"Bone index {index} out of range ({len(self.bones)} bones)")
        return self.bones[index]

    def bone_name(self, index):
        """Name of bone ``index``, or "" for -1 and out-of-range indices."""
        if 0 <= index < len(self.bones):
            return self.bones[index].name
        return ""

    def convert_textures(self, export_root):
        converted = 0
        for look in self.looks:
            for material in look.materials:
                converted += material.convert_textures(export_root)
        return converted

    def __repr__(self):
        state = "loaded" if self.loaded else "empty"
        return f"Model({self.file_path!r}, {state}, pieces={len(self.pieces)})"
