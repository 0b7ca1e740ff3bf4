import os
from unittest.mock import MagicMock

import pytest

from crash_symbols.boundary import Filesystem, HttpRequestHandler, ProcessHandler
from crash_symbols.config import ResolverConfig
from crash_symbols.models import FileInfo, Module, ProcessResult
from crash_symbols.resolver import DebugSymbolResolver

ROOT = "/debugsymbols"
LOCAL_PATH = "./lib/ruxit/somelib.so"
DIGEST = "some-md5-hash"
DEBUG_PATH = os.path.join(ROOT, DIGEST, "somelib.dbg")


class FakeFilesystem(Filesystem):
    """In-memory filesystem that records every call."""

    def __init__(self, files=(), dirs=(), hashes=None):
        self.files = set(files)
        self.dirs = set(dirs)
        self.hashes = dict(hashes or {})
        self.calls = []

    def exists(self, path):
        self.calls.append(("exists", path))
        return path in self.files or path in self.dirs

    def move(self, src, dst):
        self.calls.append(("move", src, dst))
        if src not in self.files:
            raise FileNotFoundError(src)
        self.files.discard(src)
        self.files.add(dst)

    def delete(self, path):
        self.calls.append(("delete", path))
        self.files.discard(path)

    def compute_content_hash(self, path):
        self.calls.append(("hash", path))
        if path not in self.files:
            raise FileNotFoundError(path)
        return self.hashes[path]

    def get_file_info(self, path):
        self.calls.append(("info", path))
        return FileInfo(path=path, exists=path in self.files or path in self.dirs, is_dir=path in self.dirs)

    def count(self, *call):
        return sum(1 for c in self.calls if c == call)


def merge_tool_writing(fs, returncode=0):
    """Fake merge tool run that writes its -o target into ``fs``."""
    def run(command, args, timeout=None):
        if returncode == 0:
            fs.files.add(args[1])
        return ProcessResult(returncode=returncode, stderr="" if returncode == 0 else "unstrip failed")
    return run


def download_writing(fs, result=True):
    """Fake download that creates the destination file in ``fs`` on success."""
    def download(url, dest_path):
        if result:
            fs.files.add(dest_path)
        return result
    return download


@pytest.fixture
def fs():
    return FakeFilesystem(files={LOCAL_PATH}, hashes={LOCAL_PATH: DIGEST})


@pytest.fixture
def http(fs):
    handler = MagicMock(spec=HttpRequestHandler)
    handler.download_from_url.side_effect = download_writing(fs, False)
    return handler


@pytest.fixture
def process(fs):
    handler = MagicMock(spec=ProcessHandler)
    handler.execute_and_capture_output.side_effect = merge_tool_writing(fs)
    return handler


@pytest.fixture
def config():
    return ResolverConfig(
        debug_symbol_root=ROOT,
        symbol_server_url="https://symbols.example.com",
        max_workers=1,
        verbose=False,
    )


@pytest.fixture
def module():
    return Module(
        local_path=LOCAL_PATH,
        file_name="somelib.so",
        file_path="/lib/ruxit/somelib.so",
    )


@pytest.fixture
def resolver(config, fs, http, process):
    return DebugSymbolResolver(config, filesystem=fs, http=http, process=process)
