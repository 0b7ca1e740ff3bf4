"""Downloads missing debug files from a symbol server into the cache."""
from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Callable, Dict, List, Optional

from .boundary import HttpRequestHandler
from .cache import DebugSymbolCache, debug_file_name
from .config import DEFAULT_URL_PATTERN
from .console import log

UrlBuilder = Callable[[str, str], Optional[str]]


def pattern_url_builder(server: Optional[str], pattern: str = DEFAULT_URL_PATTERN) -> UrlBuilder:
    """
    Build URLs by filling ``{server}``, ``{hash}`` and ``{file}`` in ``pattern``.

    Returns a builder yielding None when no server is configured.
    """
    def build(digest: str, file_name: str) -> Optional[str]:
        if not server:
            return None
        return pattern.format(server=server.rstrip('/'), hash=digest, file=file_name)
    return build


class SymbolFetcher:
    """
    Fetches debug files into the cache, one download per cache path at a time.

    Callers waiting on the same path find the file in the cache once the
    first download is done and skip their own. Lock entries are dropped when
    the last caller for a path leaves.

    Missing symbols are routine: every failure (no server, HTTP error,
    network or disk error) is reported as False, never raised.
    """

    def __init__(self, http: HttpRequestHandler, cache: DebugSymbolCache,
                 url_builder: UrlBuilder, verbose: bool = True):
        self.http = http
        self.cache = cache
        self.url_builder = url_builder
        self.verbose = verbose
        # path -> [lock, number of callers holding or waiting on it]
        self._locks: Dict[str, List] = {}
        self._locks_guard = threading.Lock()

    @contextmanager
    def _single_flight(self, path: str):
        with self._locks_guard:
            entry = self._locks.get(path)
            if entry is None:
                entry = self._locks[path] = [threading.Lock(), 0]
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._locks_guard:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._locks[path]

    def fetch(self, digest: str, file_name: str) -> bool:
        """Download the debug file for ``file_name`` into its cache slot."""
        dest = self.cache.resolve_path(digest, file_name)
        dbg_name = debug_file_name(file_name)

        url = self.url_builder(digest, dbg_name)
        if not url:
            if self.verbose:
                log(f"- No symbol server configured, skipping download of {dbg_name}")
            return False

        with self._single_flight(dest):
            # Another worker fetched the same binary's symbols while we waited
            if self.cache.exists(dest):
                if self.verbose:
                    log(f"+ {dbg_name} ({digest[:12]}) already in cache")
                return True

            if self.verbose:
                log(f"Attempting download: {dbg_name} ({digest})")
            try:
                ok = bool(self.http.download_from_url(url, dest))
            except Exception as e:
                log(f"- Exception downloading {dbg_name}: {str(e)[:80]}")
                return False

            if not ok:
                log(f"- No debug symbols for {dbg_name} ({digest[:12]})")
            elif self.verbose:
                log(f"+ Downloaded {dbg_name} -> {dest}")
            return ok
