"""Conversion options.

A ConvertOptions instance collects everything the command line (or a
calling script) can tune. Named presets are registered in a global dict and
used as the starting point before individual flags are applied.

Environment:
    PIX_DEBUG=1      enable debug logging
    PIX_EXPORT=dir   default export directory
"""

import os
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional


@dataclass
class ConvertOptions:
    # Filesystem roots searched for model, material and texture files.
    # Later roots shadow earlier ones.
    base_paths: List[str] = field(default_factory=list)

    # Output directory; the model's logical path is appended.
    export_path: str = "."

    # Copy referenced textures next to the exported model.
    convert_textures: bool = True

    # Companion files (.pmc / .ppd). Only used when a decoder is provided.
    load_collision: bool = True
    load_prefab: bool = True

    debug: bool = False

    @classmethod
    def from_env(cls, preset: Optional[str] = None) -> "ConvertOptions":
        """Options from ``preset`` (default preset when None), with the
        environment toggles applied."""
        options = replace(get_preset(preset or DEFAULT_PRESET))
        options.base_paths = list(options.base_paths)
        if os.environ.get("PIX_DEBUG", "") == "1":
            options.debug = True
        export = os.environ.get("PIX_EXPORT")
        if export:
            options.export_path = export
        return options


# ---------------------------------------------------------------------------
# Preset registry
# ---------------------------------------------------------------------------

CONVERT_PRESETS: Dict[str, ConvertOptions] = {}

DEFAULT_PRESET = "full"


def register_preset(name: str, options: ConvertOptions) -> None:
    CONVERT_PRESETS[name] = options


def get_preset(name: str) -> ConvertOptions:
    """Look up a preset by name. Raises KeyError for unknown names."""
    try:
        return CONVERT_PRESETS[name]
    except KeyError:
        raise KeyError(
            f"Unknown preset '{name}' (known: {', '.join(sorted(CONVERT_PRESETS))})"
        ) from None


register_preset("full", ConvertOptions())

# Geometry and traits only, no textures or companion files
register_preset("geometry", ConvertOptions(
    convert_textures=False,
    load_collision=False,
    load_prefab=False,
))
