"""Data records passed between the resolver and its collaborators."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional


class ResolutionStatus(Enum):
    """Terminal state reached by a module during resolution."""
    FILTERED_OUT = "filtered_out"
    NO_LOCAL_BINARY = "no_local_binary"
    PATCHED = "patched"
    PATCH_FAILED = "patch_failed"
    FETCH_FAILED = "fetch_failed"
    FETCH_SUCCEEDED = "fetch_succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def resolved(self) -> bool:
        return self in (ResolutionStatus.PATCHED, ResolutionStatus.FETCH_SUCCEEDED)


@dataclass
class Module:
    """A shared library recorded as loaded in the analyzed dump."""
    file_name: str
    file_path: str
    local_path: Optional[str] = None  # Local copy of the binary, if materialized
    debug_symbol_path: Optional[str] = None  # Set by the resolver only

    def to_dict(self) -> Dict[str, Any]:
        return {
            "localPath": self.local_path,
            "fileName": self.file_name,
            "filePath": self.file_path,
            "debugSymbolPath": self.debug_symbol_path,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Module":
        """Build a module from a manifest record (camelCase or snake_case keys)."""
        def pick(camel: str, snake: str) -> Any:
            return data.get(camel, data.get(snake))

        file_path = pick("filePath", "file_path") or ""
        file_name = pick("fileName", "file_name") or file_path.replace("\\", "/").rsplit("/", 1)[-1]
        return cls(
            file_name=file_name,
            file_path=file_path,
            local_path=pick("localPath", "local_path"),
            debug_symbol_path=pick("debugSymbolPath", "debug_symbol_path"),
        )


@dataclass
class FileInfo:
    """Snapshot of a path's state on disk."""
    path: str
    exists: bool
    is_dir: bool = False
    size: int = 0


@dataclass
class ProcessResult:
    """Outcome of an external tool invocation."""
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def output(self) -> str:
        return (self.stdout or "") + (self.stderr or "")
