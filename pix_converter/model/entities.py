"""In-memory model entities shared by the geometry and descriptor decoders.

Cross references (part -> pieces/locators, bone -> parent) are plain
integer indices into the owning Model's lists. Parent indices may point
forward; consumers must not assume ``parent < index``.
"""

from dataclasses import dataclass, field
from typing import List, Tuple


# Fixed capacity of the per-vertex bone influence arrays. Unused slots hold
# index -1 and weight 0.
BONE_COUNT = 8

# Texcoord alias mask: eight 4-bit fields, field i holds the uv channel that
# feeds "_TEXCOORDi".
TEXCOORD_ALIAS_SLOTS = 8

IDENTITY_MATRIX = (
    1.0, 0.0, 0.0, 0.0,
    0.0, 1.0, 0.0, 0.0,
    0.0, 0.0, 1.0, 0.0,
    0.0, 0.0, 0.0, 1.0,
)


@dataclass
class Bone:
    index: int
    name: str
    parent: int = -1                          # -1 for root
    transformation: Tuple[float, ...] = IDENTITY_MATRIX  # 16 floats, column-major
    transformation_reversed: Tuple[float, ...] = IDENTITY_MATRIX
    stretch: Tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)  # w, x, y, z
    translation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: Tuple[float, float, float] = (1.0, 1.0, 1.0)
    sign_of_determinant: float = 1.0

    def matrix_rows(self):
        """The transformation as four rows of four floats."""
        m = self.transformation
        return [tuple(m[col * 4 + row] for col in range(4)) for row in range(4)]


@dataclass
class Locator:
    index: int
    name: str
    position: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation: Tuple[float, float, float, float] = (1.0, 0.0, 0.0, 0.0)  # w, x, y, z
    scale: float = 1.0
    hookup: str = ""


@dataclass
class Part:
    name: str
    piece_index: int = 0
    piece_count: int = 0
    locator_index: int = 0
    locator_count: int = 0

    @property
    def pieces(self):
        return range(self.piece_index, self.piece_index + self.piece_count)

    @property
    def locators(self):
        return range(self.locator_index, self.locator_index + self.locator_count)


class Vertex:
    """A single decoded vertex. Colors are in the doubled [0, 2] range."""

    __slots__ = (
        'position', 'normal', 'tangent', 'texcoords',
        'color', 'color2', 'bone_index', 'bone_weight',
    )

    def __init__(self):
        self.position = (0.0, 0.0, 0.0)
        self.normal = (0.0, 0.0, 0.0)
        self.tangent = (0.0, 0.0, 0.0, 0.0)   # w, x, y, z
        self.texcoords = []                   # list of (u, v), one per channel
        self.color = (0.0, 0.0, 0.0, 0.0)
        self.color2 = (0.0, 0.0, 0.0, 0.0)
        self.bone_index = [-1] * BONE_COUNT
        self.bone_weight = [0] * BONE_COUNT   # raw 0..255

    def influences(self, width=BONE_COUNT):
        """(bone index, raw weight) pairs with a nonzero weight."""
        width = min(width, BONE_COUNT)
        return [
            (self.bone_index[k], self.bone_weight[k])
            for k in range(width)
            if self.bone_weight[k] != 0
        ]

    def __repr__(self):
        return f"Vertex(position={self.position})"


class Piece:
    """A mesh chunk with its own vertex and index buffers."""

    __slots__ = (
        'index', 'material', 'texcoord_mask', 'texcoord_count', 'bones',
        'position', 'normal', 'tangent', 'texcoord', 'color', 'color2',
        'stream_count', 'vertices', 'triangles',
    )

    def __init__(self, index):
        self.index = index
        self.material = 0
        self.texcoord_mask = 0
        self.texcoord_count = 0
        self.bones = 0          # bone influence width, 0 = unskinned
        self.position = False
        self.normal = False
        self.tangent = False
        self.texcoord = False
        self.color = False
        self.color2 = False
        self.stream_count = 0
        self.vertices = []      # list of Vertex
        self.triangles = []     # list of (a, b, c)

    @property
    def skinned(self):
        return self.bones > 0

    def texcoord_aliases(self, channel):
        """Texcoord alias slots fed by uv ``channel``."""
        return [
            slot for slot in range(TEXCOORD_ALIAS_SLOTS)
            if (self.texcoord_mask >> (slot * 4)) & 0xF == channel
        ]

    def __repr__(self):
        return (
            f"Piece({self.index}, verts={len(self.vertices)}, "
            f"tris={len(self.triangles)}, streams={self.stream_count})"
        )


@dataclass
class Look:
    name: str
    materials: list = field(default_factory=list)  # one Material per slot


ATTRIBUTE_INT = 0

ATTRIBUTE_FORMATS = {
    ATTRIBUTE_INT: "INT",
}


@dataclass
class Attribute:
    name: str
    type: int = ATTRIBUTE_INT
    value: int = 0

    @property
    def format_name(self):
        return ATTRIBUTE_FORMATS.get(self.type, "UNKNOWN")


@dataclass
class VariantPart:
    attributes: List[Attribute] = field(default_factory=list)

    def __getitem__(self, key):
        if isinstance(key, str):
            for attribute in self.attributes:
                if attribute.name == key:
                    return attribute
            raise KeyError(key)
        return self.attributes[key]

    def __len__(self):
        return len(self.attributes)


@dataclass
class Variant:
    name: str
    parts: List[VariantPart] = field(default_factory=list)

    def __getitem__(self, index):
        return self.parts[index]
