"""Content-addressed debug symbol cache.

Layout: ``<root>/<content digest>/<module stem>.dbg``. Entries are only ever
added, so any binary that hashes the same as a previously resolved one reuses
its debug file.
"""
import os

from .boundary import Filesystem
from .errors import ConfigurationError

DEBUG_FILE_EXTENSION = ".dbg"


def debug_file_name(file_name: str) -> str:
    """Name of the debug file for a module, e.g. ``somelib.so`` -> ``somelib.dbg``."""
    stem, _ = os.path.splitext(file_name)
    return stem + DEBUG_FILE_EXTENSION


class DebugSymbolCache:
    """Maps (digest, module name) to a path under the cache root."""

    def __init__(self, root: str, filesystem: Filesystem):
        self.root = root
        self.filesystem = filesystem

    def resolve_path(self, digest: str, file_name: str) -> str:
        """Cache path of the debug file for ``file_name``; no I/O."""
        return os.path.join(self.root, digest, debug_file_name(file_name))

    def exists(self, path: str) -> bool:
        return self.filesystem.exists(path)

    def check_root(self):
        """Raise ConfigurationError if the root can't hold cache entries."""
        if not self.root:
            raise ConfigurationError("debug symbol root is not configured")
        info = self.filesystem.get_file_info(self.root)
        if info.exists and not info.is_dir:
            raise ConfigurationError(f"debug symbol root is not a directory: {self.root}")
