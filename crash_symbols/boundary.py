"""Capability interfaces consumed by the resolver, plus default implementations.

The resolver only talks to the filesystem, the network and child processes
through the three narrow interfaces below, so tests can swap in in-memory
fakes. The default implementations use the local disk, ``requests`` and
``subprocess``.
"""
from __future__ import annotations

import hashlib
import os
import subprocess
import threading
from pathlib import Path
from typing import List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .console import log
from .models import FileInfo, ProcessResult


class Filesystem:
    """Filesystem operations used by the resolver."""

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def move(self, src: str, dst: str) -> None:
        raise NotImplementedError

    def delete(self, path: str) -> None:
        """Delete a file. Deleting a missing file is not an error."""
        raise NotImplementedError

    def compute_content_hash(self, path: str) -> str:
        raise NotImplementedError

    def get_file_info(self, path: str) -> FileInfo:
        raise NotImplementedError


class HttpRequestHandler:
    """Network access used by the symbol fetcher."""

    def download_from_url(self, url: str, dest_path: str) -> bool:
        """Download ``url`` into ``dest_path``. True only if the file was written."""
        raise NotImplementedError

    def cancel(self) -> None:
        """Abort in-flight and future downloads. Optional."""

    def reset(self) -> None:
        """Allow downloads again after cancel(). Optional."""


class ProcessHandler:
    """Child process execution used by the binary patcher."""

    def execute_and_capture_output(self, command: str, args: List[str],
                                   timeout: Optional[float] = None) -> ProcessResult:
        raise NotImplementedError


class LocalFilesystem(Filesystem):
    """Filesystem capability backed by the local disk."""

    HASH_CHUNK_SIZE = 1024 * 1024

    def exists(self, path: str) -> bool:
        return os.path.exists(path)

    def move(self, src: str, dst: str) -> None:
        os.replace(src, dst)

    def delete(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass

    def compute_content_hash(self, path: str) -> str:
        """SHA-256 hex digest of the file's bytes."""
        digest = hashlib.sha256()
        with open(path, 'rb') as f:
            for chunk in iter(lambda: f.read(self.HASH_CHUNK_SIZE), b''):
                digest.update(chunk)
        return digest.hexdigest()

    def get_file_info(self, path: str) -> FileInfo:
        try:
            st = os.stat(path)
        except FileNotFoundError:
            return FileInfo(path=path, exists=False)
        return FileInfo(path=path, exists=True, is_dir=os.path.isdir(path), size=st.st_size)


class RequestsHttpHandler(HttpRequestHandler):
    """Downloads symbol files with a retrying ``requests`` session."""

    CHUNK_SIZE = 8192

    def __init__(self, timeout: float = 30, verbose: bool = True):
        self.timeout = timeout
        self.verbose = verbose
        self._session: Optional[requests.Session] = None
        self._session_lock = threading.Lock()
        self._cancelled = threading.Event()

    def _get_session(self) -> requests.Session:
        """Get or create HTTP session with retry configuration."""
        with self._session_lock:
            if self._session is None:
                self._session = requests.Session()
                retry_strategy = Retry(
                    total=3,
                    backoff_factor=0.5,
                    status_forcelist=[429, 500, 502, 503, 504],
                )
                adapter = HTTPAdapter(max_retries=retry_strategy)
                self._session.mount("http://", adapter)
                self._session.mount("https://", adapter)
                self._session.headers.update({
                    'User-Agent': 'CrashSymbols/1.0 (Debug Symbol Download)'
                })
            return self._session

    def cancel(self) -> None:
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()

    def download_from_url(self, url: str, dest_path: str) -> bool:
        if self._cancelled.is_set():
            return False

        dest = Path(dest_path)
        part = dest.with_name(dest.name + ".part")
        try:
            response = self._get_session().get(url, stream=True, timeout=self.timeout)
            with response:
                if self.verbose:
                    log(f"    -> HTTP {response.status_code} {url[:100]}")
                if response.status_code != 200:
                    return False

                dest.parent.mkdir(parents=True, exist_ok=True)
                with open(part, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                        if self._cancelled.is_set():
                            break
                        if chunk:
                            f.write(chunk)

            if self._cancelled.is_set():
                part.unlink(missing_ok=True)
                return False

            os.replace(part, dest)
            return True
        except (requests.RequestException, OSError) as e:
            log(f"    -> Exception: {str(e)[:60]}")
            try:
                part.unlink(missing_ok=True)
            except OSError:
                pass
            return False


class SubprocessHandler(ProcessHandler):
    """Runs external tools with ``subprocess.run``."""

    def execute_and_capture_output(self, command: str, args: List[str],
                                   timeout: Optional[float] = None) -> ProcessResult:
        result = subprocess.run(
            [command, *args],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return ProcessResult(returncode=result.returncode, stdout=result.stdout, stderr=result.stderr)
