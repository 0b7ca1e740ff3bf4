"""Debug symbol resolution for the modules of a Linux crash dump.

For every module whose binary was materialized locally, the resolver looks up
the matching debug file in the content-addressed cache, downloads it from the
symbol server when missing, and unstrips the binary so later symbolication
sees function names and line numbers.
"""
from __future__ import annotations

import subprocess
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .boundary import (
    Filesystem,
    HttpRequestHandler,
    LocalFilesystem,
    ProcessHandler,
    RequestsHttpHandler,
    SubprocessHandler,
)
from .cache import DebugSymbolCache
from .config import ResolverConfig
from .console import log
from .errors import PatchError
from .fetcher import SymbolFetcher, UrlBuilder, pattern_url_builder
from .hasher import ContentHasher
from .models import Module, ResolutionStatus
from .module_filter import ModulePredicate, RecognizedLocationFilter
from .patcher import BinaryPatcher


class DebugSymbolResolver:
    """
    Resolves and merges debug symbols for crash dump modules.

    The filesystem, network and process capabilities default to the local
    implementations in :mod:`crash_symbols.boundary` and can be replaced,
    e.g. by fakes in tests.
    """

    def __init__(self, config: ResolverConfig,
                 filesystem: Optional[Filesystem] = None,
                 http: Optional[HttpRequestHandler] = None,
                 process: Optional[ProcessHandler] = None,
                 module_filter: Optional[ModulePredicate] = None,
                 url_builder: Optional[UrlBuilder] = None,
                 progress_callback: Optional[Callable[[str, int, int], None]] = None):
        """
        Initialize the resolver.

        Args:
            config: Resolver settings, including the debug symbol cache root
            filesystem: Filesystem capability (default: local disk)
            http: Download capability (default: requests session)
            process: Process execution capability (default: subprocess)
            module_filter: Eligibility predicate (default: RecognizedLocationFilter)
            url_builder: (digest, debug file name) -> URL (default: config URL pattern)
            progress_callback: Callback for progress updates (message, current, total)
        """
        self.config = config
        self.filesystem = filesystem or LocalFilesystem()
        self.http = http or RequestsHttpHandler(timeout=config.download_timeout, verbose=config.verbose)
        self.process = process or SubprocessHandler()
        self.module_filter = module_filter or RecognizedLocationFilter(
            config.module_extensions, config.module_directory_patterns)
        self.progress_callback = progress_callback

        self.hasher = ContentHasher(self.filesystem)
        self.cache = DebugSymbolCache(config.debug_symbol_root, self.filesystem)
        self.fetcher = SymbolFetcher(
            self.http,
            self.cache,
            url_builder or pattern_url_builder(config.symbol_server_url, config.symbol_url_pattern),
            verbose=config.verbose,
        )
        self.patcher = BinaryPatcher(
            self.filesystem,
            self.process,
            merge_tool=config.merge_tool,
            timeout=config.merge_timeout,
            check_exit_status=config.check_merge_exit_status,
            verbose=config.verbose,
        )

        # Terminal state per module, keyed by position in the last resolve() input
        self.results: Dict[int, ResolutionStatus] = {}
        self._cancelled = threading.Event()
        self._stats_lock = threading.Lock()

        # Statistics
        self.stats = {
            'symbols_cached': 0,
            'symbols_downloaded': 0,
            'symbols_failed': 0,
            'patches_applied': 0,
            'patches_failed': 0,
            'modules_skipped': 0,
            'modules_failed': 0,
        }

    def _count(self, key: str):
        with self._stats_lock:
            self.stats[key] += 1

    def _report_progress(self, message: str, current: int = 0, total: int = 0):
        """Report progress to callback if available."""
        if self.progress_callback:
            try:
                self.progress_callback(message, current, total)
            except Exception:
                pass

    def cancel(self):
        """
        Stop the current run: modules not yet started are left unresolved.

        The next resolve() call starts with cancellation cleared.
        """
        self._cancelled.set()
        self.http.cancel()

    def resolve(self, modules: Sequence[Module]) -> None:
        """
        Resolve debug symbols for ``modules``, setting ``debug_symbol_path`` in place.

        Per-module failures leave that module unresolved and never stop the
        others. Only configuration problems (an unusable cache root) raise.

        Raises:
            ConfigurationError: the debug symbol root can't be used
        """
        self.results = {}
        eligible: List[Tuple[int, Module]] = []
        for index, module in enumerate(modules):
            if not module.local_path:
                self.results[index] = ResolutionStatus.NO_LOCAL_BINARY
                self._count('modules_skipped')
            elif not self.module_filter(module):
                self.results[index] = ResolutionStatus.FILTERED_OUT
                self._count('modules_skipped')
            else:
                eligible.append((index, module))

        if not eligible:
            return

        self.cache.check_root()
        self._cancelled.clear()
        self.http.reset()

        total = len(eligible)
        if self.config.verbose:
            log(f"Resolving debug symbols for {total} of {len(modules)} modules")
        self._report_progress(f"Resolving debug symbols for {total} modules...", 0, total)

        completed = 0
        if self.config.max_workers == 1 or total == 1:
            for index, module in eligible:
                self.results[index] = self._resolve_guarded(module)
                completed += 1
                self._report_progress(f"Resolved {completed}/{total}: {module.file_name}", completed, total)
        else:
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                future_to_index = {
                    executor.submit(self._resolve_guarded, module): (index, module)
                    for index, module in eligible
                }
                for future in as_completed(future_to_index):
                    index, module = future_to_index[future]
                    self.results[index] = future.result()
                    completed += 1
                    self._report_progress(f"Resolved {completed}/{total}: {module.file_name}", completed, total)

        resolved = sum(1 for status in self.results.values() if status.resolved)
        if self.config.verbose:
            log(f"Resolution complete: {resolved}/{total} modules have debug symbols")
            log(f"Statistics: {self.stats}")

    def _resolve_guarded(self, module: Module) -> ResolutionStatus:
        """Resolve one module, turning any failure into a status."""
        if self._cancelled.is_set():
            return ResolutionStatus.CANCELLED
        try:
            return self._resolve_module(module)
        except Exception as e:
            self._count('modules_failed')
            log(f"- Exception resolving {module.file_name}: {str(e)[:80]}")
            return ResolutionStatus.FAILED

    def _resolve_module(self, module: Module) -> ResolutionStatus:
        self.patcher.recover_interrupted(module.local_path)

        digest = self.hasher.hash(module.local_path)
        debug_path = self.cache.resolve_path(digest, module.file_name)

        if self.cache.exists(debug_path):
            self._count('symbols_cached')
            if self.config.verbose:
                log(f"+ {module.file_name} (cached: {debug_path})")
            return self._patch(module, debug_path)

        if self._cancelled.is_set():
            return ResolutionStatus.CANCELLED
        if not self.fetcher.fetch(digest, module.file_name):
            self._count('symbols_failed')
            return ResolutionStatus.FETCH_FAILED
        self._count('symbols_downloaded')

        if self.config.patch_after_download:
            status = self._patch(module, debug_path)
            if status is not ResolutionStatus.PATCHED:
                return status
        else:
            module.debug_symbol_path = debug_path
        return ResolutionStatus.FETCH_SUCCEEDED

    def _patch(self, module: Module, debug_path: str) -> ResolutionStatus:
        try:
            self.patcher.patch(module.local_path, debug_path)
        except (PatchError, OSError, subprocess.TimeoutExpired) as e:
            self._count('patches_failed')
            log(f"- Failed to unstrip {module.file_name}: {str(e)[:80]}")
            return ResolutionStatus.PATCH_FAILED
        self._count('patches_applied')
        module.debug_symbol_path = debug_path
        return ResolutionStatus.PATCHED

    def get_statistics(self) -> Dict[str, Any]:
        """Get symbol resolution statistics."""
        with self._stats_lock:
            return {
                'modules_resolved': sum(1 for s in self.results.values() if s.resolved),
                **self.stats,
            }
