"""Linux crash dump debug symbol resolver.

This package prepares the modules of a dumped Linux process for symbolication:
- Content-addressed cache of separate debug files (<root>/<digest>/<name>.dbg)
- Download of missing debug files from a symbol server
- In-place unstripping of module binaries with eu-unstrip
- Eligibility filtering of modules by install location
- Parallel, failure-isolated resolution of many modules
"""
from .boundary import (
    Filesystem,
    HttpRequestHandler,
    ProcessHandler,
    LocalFilesystem,
    RequestsHttpHandler,
    SubprocessHandler,
)
from .cache import DebugSymbolCache, debug_file_name
from .config import ResolverConfig
from .errors import ConfigurationError, PatchError
from .fetcher import SymbolFetcher, pattern_url_builder
from .hasher import ContentHasher
from .models import Module, ResolutionStatus, FileInfo, ProcessResult
from .module_filter import RecognizedLocationFilter, accept_all
from .patcher import BinaryPatcher
from .resolver import DebugSymbolResolver

__all__ = [
    # Resolver
    "DebugSymbolResolver",
    "ResolverConfig",
    "Module",
    "ResolutionStatus",
    # Components
    "ContentHasher",
    "DebugSymbolCache",
    "debug_file_name",
    "SymbolFetcher",
    "pattern_url_builder",
    "BinaryPatcher",
    "RecognizedLocationFilter",
    "accept_all",
    # Capabilities
    "Filesystem",
    "HttpRequestHandler",
    "ProcessHandler",
    "LocalFilesystem",
    "RequestsHttpHandler",
    "SubprocessHandler",
    "FileInfo",
    "ProcessResult",
    # Errors
    "ConfigurationError",
    "PatchError",
]

__version__ = "1.0.0"
