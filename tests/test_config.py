"""Tests for resolver configuration."""
import pytest

from crash_symbols.config import ResolverConfig
from crash_symbols.errors import ConfigurationError

ENV_VARS = [
    "DEBUG_SYMBOL_ROOT", "DEBUG_SYMBOL_SERVER", "DEBUG_SYMBOL_URL_PATTERN", "DEBUG_SYMBOL_MERGE_TOOL",
    "DEBUG_SYMBOL_MAX_WORKERS", "DEBUG_SYMBOL_PATCH_AFTER_DOWNLOAD", "DEBUG_SYMBOL_MODULE_DIRS",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        # Set then delete so anything load_dotenv adds is undone afterwards
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    return tmp_path / "missing.env"


def test_defaults():
    config = ResolverConfig(debug_symbol_root="/debugsymbols")
    assert config.merge_tool == "eu-unstrip"
    assert config.patch_after_download is True
    assert config.check_merge_exit_status is True
    assert config.symbol_server_url is None


@pytest.mark.parametrize("kwargs", [
    {"debug_symbol_root": ""},
    {"debug_symbol_root": "/d", "max_workers": 0},
    {"debug_symbol_root": "/d", "merge_timeout": 0},
    {"debug_symbol_root": "/d", "symbol_url_pattern": "{server}/{file}"},
])
def test_invalid_config(kwargs):
    with pytest.raises(ConfigurationError):
        ResolverConfig(**kwargs)


def test_from_env(monkeypatch, clean_env):
    monkeypatch.setenv("DEBUG_SYMBOL_ROOT", "/var/cache/debugsymbols")
    monkeypatch.setenv("DEBUG_SYMBOL_SERVER", "https://symbols.example.com")
    monkeypatch.setenv("DEBUG_SYMBOL_MAX_WORKERS", "8")
    monkeypatch.setenv("DEBUG_SYMBOL_PATCH_AFTER_DOWNLOAD", "no")
    monkeypatch.setenv("DEBUG_SYMBOL_MODULE_DIRS", "ruxit, acme")

    config = ResolverConfig.from_env(str(clean_env))

    assert config.debug_symbol_root == "/var/cache/debugsymbols"
    assert config.symbol_server_url == "https://symbols.example.com"
    assert config.max_workers == 8
    assert config.patch_after_download is False
    assert config.module_directory_patterns == ("ruxit", "acme")


def test_from_env_overrides_win(monkeypatch, clean_env):
    monkeypatch.setenv("DEBUG_SYMBOL_ROOT", "/env/root")
    config = ResolverConfig.from_env(str(clean_env), debug_symbol_root="/cli/root", max_workers=None)
    assert config.debug_symbol_root == "/cli/root"
    assert config.max_workers == 4


def test_from_env_reads_dotenv(clean_env, tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("DEBUG_SYMBOL_ROOT=/from/dotenv\n", encoding="utf-8")
    config = ResolverConfig.from_env(str(env_file))
    assert config.debug_symbol_root == "/from/dotenv"


def test_from_env_requires_root(clean_env):
    with pytest.raises(ConfigurationError):
        ResolverConfig.from_env(str(clean_env))


def test_from_env_bad_worker_count(monkeypatch, clean_env):
    monkeypatch.setenv("DEBUG_SYMBOL_ROOT", "/d")
    monkeypatch.setenv("DEBUG_SYMBOL_MAX_WORKERS", "many")
    with pytest.raises(ConfigurationError):
        ResolverConfig.from_env(str(clean_env))
