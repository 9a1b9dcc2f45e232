"""Logical-path filesystem used to locate model files.

Prism paths are absolute inside a game archive (``/vehicle/truck/cab``).
``SysFileSystem`` maps them onto a directory on disk and ``UberFileSystem``
stacks several roots so that mods can override base data.
"""

import os
import logging

_log = logging.getLogger("pix_fs")


class SysFileSystem:
    """Filesystem rooted at a directory on disk."""

    def __init__(self, root):
        self.root = os.path.abspath(root)

    def resolve(self, path):
        return os.path.join(self.root, *path.strip("/").split("/"))

    def exists(self, path):
        return os.path.isfile(self.resolve(path))

    def read(self, path):
        """Read the whole file. Raises OSError if it cannot be opened."""
        with open(self.resolve(path), "rb") as f:
            return f.read()

    def read_text(self, path, encoding="utf-8"):
        return self.read(path).decode(encoding, errors="replace")

    def __repr__(self):
        return f"SysFileSystem({self.root!r})"


class UberFileSystem:
    """Stack of filesystems; later roots take priority over earlier ones."""

    def __init__(self, *filesystems):
        self.filesystems = list(filesystems)

    def mount(self, filesystem):
        self.filesystems.append(filesystem)
        _log.debug("Mounted %r", filesystem)

    def _find(self, path):
        for fs in reversed(self.filesystems):
            if fs.exists(path):
                return fs
        return None

    def resolve(self, path):
        fs = self._find(path)
        if fs is None:
            return None
        return fs.resolve(path)

    def exists(self, path):
        return self._find(path) is not None

    def read(self, path):
        fs = self._find(path)
        if fs is None:
            raise FileNotFoundError(2, "No such file or directory", path)
        return fs.read(path)

    def read_text(self, path, encoding="utf-8"):
        return self.read(path).decode(encoding, errors="replace")
