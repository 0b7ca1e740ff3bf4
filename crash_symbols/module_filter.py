"""Eligibility policy deciding which modules get resolved."""
from __future__ import annotations

import re
from typing import Callable, Iterable, Tuple

from .config import DEFAULT_DIRECTORY_PATTERNS, DEFAULT_EXTENSIONS
from .models import Module

ModulePredicate = Callable[[Module], bool]


def has_local_binary(module: Module) -> bool:
    return bool(module.local_path)


class RecognizedLocationFilter:
    """
    Accepts native libraries loaded from a monitored install location.

    A module is recognized when its runtime path (as recorded in the dump)
    has one of ``extensions`` (versioned names like ``libfoo.so.1`` count)
    and one of its directory components contains one of
    ``directory_patterns``, case-insensitively.
    """

    def __init__(self, extensions: Iterable[str] = DEFAULT_EXTENSIONS,
                 directory_patterns: Iterable[str] = DEFAULT_DIRECTORY_PATTERNS):
        self.extensions: Tuple[str, ...] = tuple(e.lower() for e in extensions)
        self.directory_patterns: Tuple[str, ...] = tuple(p.lower() for p in directory_patterns)

    def _has_extension(self, name: str) -> bool:
        # the extension may only be followed by numeric version components
        return any(re.search(re.escape(ext) + r"(\.\d+)*$", name) for ext in self.extensions)

    def is_eligible(self, module: Module) -> bool:
        if not has_local_binary(module) or not module.file_path:
            return False

        parts = module.file_path.replace("\\", "/").lower().split("/")
        name, directories = parts[-1], parts[:-1]
        if not self._has_extension(name):
            return False
        return any(pattern in directory
                   for directory in directories
                   for pattern in self.directory_patterns)

    __call__ = is_eligible


def accept_all(module: Module) -> bool:
    """Policy accepting every module that has a local binary."""
    return has_local_binary(module)
