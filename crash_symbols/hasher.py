"""Content hashing of module binaries."""
from .boundary import Filesystem


class ContentHasher:
    """Computes the cache key of a local binary from its bytes."""

    def __init__(self, filesystem: Filesystem):
        self.filesystem = filesystem

    def hash(self, path: str) -> str:
        return self.filesystem.compute_content_hash(path)
