"""Exceptions raised by the symbol resolution pipeline."""
from typing import Optional


class ConfigurationError(ValueError):
    """The resolver configuration is unusable (e.g. bad cache root)."""


class PatchError(RuntimeError):
    """The merge tool failed to unstrip a binary."""

    def __init__(self, message: str, returncode: Optional[int] = None, output: str = ""):
        super().__init__(message)
        self.returncode = returncode
        self.output = output
