"""Merges debug files into module binaries with an external unstrip tool."""
from __future__ import annotations

from .boundary import Filesystem, ProcessHandler
from .config import DEFAULT_MERGE_TOOL
from .console import log
from .errors import PatchError

TEMP_SUFFIX = ".old"


class BinaryPatcher:
    """
    Unstrips a module binary in place.

    The binary is first moved aside to ``<path>.old`` and the merge tool writes
    the combined binary back to ``<path>``. A ``.old`` file left behind by an
    interrupted earlier run is removed before starting, and the ``.old`` file
    is always removed at the end, so the sequence can be re-run after a crash.

    If the merge fails the original binary is moved back into place before
    the cleanup.
    """

    def __init__(self, filesystem: Filesystem, process: ProcessHandler,
                 merge_tool: str = DEFAULT_MERGE_TOOL, timeout: float = 120.0,
                 check_exit_status: bool = True, verbose: bool = True):
        self.filesystem = filesystem
        self.process = process
        self.merge_tool = merge_tool
        self.timeout = timeout
        self.check_exit_status = check_exit_status
        self.verbose = verbose

    def merge_arguments(self, local_path: str, debug_file_path: str):
        return ["-o", local_path, local_path + TEMP_SUFFIX, debug_file_path]

    def patch(self, local_path: str, debug_file_path: str) -> None:
        """
        Merge ``debug_file_path`` into the binary at ``local_path``.

        Raises:
            PatchError: the merge tool exited with a nonzero status
            OSError: moving or deleting files failed
            subprocess.TimeoutExpired: the merge tool hung
        """
        temp_path = local_path + TEMP_SUFFIX

        # Leftover from an earlier run that died between move and cleanup
        if self.filesystem.exists(temp_path):
            if self.verbose:
                log(f"Removing stale {temp_path}")
            self.filesystem.delete(temp_path)

        self.filesystem.move(local_path, temp_path)
        merged = False
        try:
            if self.verbose:
                log(f"Running {self.merge_tool} on {local_path}")
            result = self.process.execute_and_capture_output(
                self.merge_tool, self.merge_arguments(local_path, debug_file_path), timeout=self.timeout)
            if self.check_exit_status and result.returncode != 0:
                raise PatchError(
                    f"{self.merge_tool} exited with status {result.returncode} for {local_path}",
                    returncode=result.returncode,
                    output=result.output,
                )
            merged = True
        finally:
            if not merged:
                self._restore(local_path, temp_path)
            self.filesystem.delete(temp_path)

        if self.verbose:
            log(f"+ Unstripped {local_path}")

    def _restore(self, local_path: str, temp_path: str):
        """Put the original binary back after a failed merge."""
        if self.filesystem.exists(local_path):
            self.filesystem.delete(local_path)
        self.filesystem.move(temp_path, local_path)
        log(f"- Restored original binary {local_path}")

    def recover_interrupted(self, local_path: str) -> bool:
        """
        Undo a run that crashed after moving the binary aside but before merging.

        Returns True if the binary was moved back from ``.old``.
        """
        temp_path = local_path + TEMP_SUFFIX
        if self.filesystem.exists(local_path) or not self.filesystem.exists(temp_path):
            return False
        self.filesystem.move(temp_path, local_path)
        if self.verbose:
            log(f"Recovered {local_path} from interrupted unstrip")
        return True
