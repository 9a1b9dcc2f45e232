"""Optional companion files of a model.

Collision (.pmc) and prefab (.ppd) data are decoded by external
collaborators. The model only checks that the companion file exists and
hands its path over; these protocols describe what it expects back.
"""

from typing import Protocol

COLLISION_EXT = ".pmc"
PREFAB_EXT = ".ppd"


class Collision(Protocol):
    def load(self, model, file_path: str) -> bool:
        ...

    def save_to_pic(self, export_root: str) -> bool:
        ...


class Prefab(Protocol):
    def load(self, file_path: str) -> bool:
        ...

    def save_to_pip(self, export_root: str) -> bool:
        ...
