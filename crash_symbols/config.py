"""Resolver configuration.

Settings are passed explicitly to the resolver at construction. They can also
be read from the environment (and a ``.env`` file) with
:meth:`ResolverConfig.from_env`.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from dotenv import load_dotenv

from .errors import ConfigurationError

DEFAULT_URL_PATTERN = "{server}/{hash}/{file}"
DEFAULT_MERGE_TOOL = "eu-unstrip"
DEFAULT_EXTENSIONS = (".so",)
DEFAULT_DIRECTORY_PATTERNS = ("ruxit", "dynatrace", "oneagent")


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(value: str) -> Tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclass
class ResolverConfig:
    """All settings of a resolution run."""
    debug_symbol_root: str
    symbol_server_url: Optional[str] = None  # No server means cache-only
    symbol_url_pattern: str = DEFAULT_URL_PATTERN
    merge_tool: str = DEFAULT_MERGE_TOOL
    merge_timeout: float = 120.0
    download_timeout: float = 30.0
    max_workers: int = 4
    patch_after_download: bool = True
    check_merge_exit_status: bool = True
    module_extensions: Tuple[str, ...] = DEFAULT_EXTENSIONS
    module_directory_patterns: Tuple[str, ...] = field(default=DEFAULT_DIRECTORY_PATTERNS)
    verbose: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self):
        """Raise ConfigurationError for settings that can never work."""
        if not self.debug_symbol_root or not str(self.debug_symbol_root).strip():
            raise ConfigurationError("debug_symbol_root must be set")
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.merge_timeout <= 0 or self.download_timeout <= 0:
            raise ConfigurationError("timeouts must be positive")
        if not self.merge_tool:
            raise ConfigurationError("merge_tool must be set")
        for placeholder in ("{hash}", "{file}"):
            if placeholder not in self.symbol_url_pattern:
                raise ConfigurationError(f"symbol_url_pattern is missing {placeholder}")

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "ResolverConfig":
        """
        Build a config from DEBUG_SYMBOL_* environment variables.

        Args:
            env_file: Optional .env file to load first (defaults to ./.env if present)
            **overrides: Explicit values taking precedence over the environment
        """
        load_dotenv(env_file)
        env = os.environ
        values = {}
        if env.get("DEBUG_SYMBOL_ROOT"):
            values["debug_symbol_root"] = env["DEBUG_SYMBOL_ROOT"]
        if env.get("DEBUG_SYMBOL_SERVER"):
            values["symbol_server_url"] = env["DEBUG_SYMBOL_SERVER"]
        if env.get("DEBUG_SYMBOL_URL_PATTERN"):
            values["symbol_url_pattern"] = env["DEBUG_SYMBOL_URL_PATTERN"]
        if env.get("DEBUG_SYMBOL_MERGE_TOOL"):
            values["merge_tool"] = env["DEBUG_SYMBOL_MERGE_TOOL"]
        if env.get("DEBUG_SYMBOL_MAX_WORKERS"):
            try:
                values["max_workers"] = int(env["DEBUG_SYMBOL_MAX_WORKERS"])
            except ValueError:
                raise ConfigurationError(
                    f"DEBUG_SYMBOL_MAX_WORKERS is not an integer: {env['DEBUG_SYMBOL_MAX_WORKERS']}")
        if env.get("DEBUG_SYMBOL_PATCH_AFTER_DOWNLOAD"):
            values["patch_after_download"] = _env_bool(env["DEBUG_SYMBOL_PATCH_AFTER_DOWNLOAD"])
        if env.get("DEBUG_SYMBOL_MODULE_DIRS"):
            values["module_directory_patterns"] = _env_list(env["DEBUG_SYMBOL_MODULE_DIRS"])
        values.update({k: v for k, v in overrides.items() if v is not None})

        if "debug_symbol_root" not in values:
            raise ConfigurationError("DEBUG_SYMBOL_ROOT is not set")
        return cls(**values)
