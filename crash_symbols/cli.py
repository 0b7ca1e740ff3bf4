"""Command line interface for resolving debug symbols of dumped modules."""
import argparse
import json
import sys

from .boundary import LocalFilesystem
from .cache import DebugSymbolCache
from .config import ResolverConfig
from .errors import ConfigurationError
from .models import Module
from .resolver import DebugSymbolResolver


def load_manifest(path: str):
    """Read a JSON list of module records."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get('modules', [])
    return [Module.from_dict(entry) for entry in data]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='crash-symbols',
        description='Resolve and merge debug symbols for modules of a Linux crash dump',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Resolve modules listed in a manifest, writing the updated manifest
  %(prog)s resolve modules.json --root /debugsymbols -o resolved.json

  # Print the cache key of a binary
  %(prog)s hash ./lib/ruxit/somelib.so

  # Show where the debug file of a binary would be cached
  %(prog)s cache-path ./lib/ruxit/somelib.so somelib.so --root /debugsymbols

Settings not given on the command line are read from DEBUG_SYMBOL_* environment
variables (a .env file is loaded if present).
        """
    )
    sub = parser.add_subparsers(dest='command', required=True)

    resolve = sub.add_parser('resolve', help='Resolve a JSON manifest of modules')
    resolve.add_argument('manifest', help='JSON list of {localPath, fileName, filePath} records')
    resolve.add_argument('--output', '-o', help='Output file for the updated manifest (default: console)')
    resolve.add_argument('--root', help='Debug symbol cache root (DEBUG_SYMBOL_ROOT)')
    resolve.add_argument('--server', help='Symbol server base URL (DEBUG_SYMBOL_SERVER)')
    resolve.add_argument('--workers', type=int, help='Number of modules resolved in parallel')
    resolve.add_argument('--no-download', action='store_true', help='Only use symbols already in the cache')
    resolve.add_argument('--no-patch-after-download', action='store_true',
                         help='Do not unstrip binaries whose symbols were just downloaded')
    resolve.add_argument('--quiet', '-q', action='store_true', help='Only print summary lines')

    hash_cmd = sub.add_parser('hash', help='Print the content digest of a binary')
    hash_cmd.add_argument('binary')

    cache_path = sub.add_parser('cache-path', help='Print the cache path of a binary\'s debug file')
    cache_path.add_argument('binary')
    cache_path.add_argument('file_name', help='Module file name, e.g. somelib.so')
    cache_path.add_argument('--root', help='Debug symbol cache root (DEBUG_SYMBOL_ROOT)')
    return parser


def run_resolve(args) -> int:
    config = ResolverConfig.from_env(
        debug_symbol_root=args.root,
        symbol_server_url=args.server,
        max_workers=args.workers,
        patch_after_download=False if args.no_patch_after_download else None,
        verbose=False if args.quiet else None,
    )
    url_builder = (lambda digest, file_name: None) if args.no_download else None

    modules = load_manifest(args.manifest)
    resolver = DebugSymbolResolver(config, url_builder=url_builder)
    resolver.resolve(modules)

    output = json.dumps([m.to_dict() for m in modules], indent=2)
    if args.output:
        with open(args.output, 'w', encoding='utf-8') as f:
            f.write(output)
        print(f"\nResults saved to: {args.output}")
    else:
        print(output)

    stats = resolver.get_statistics()
    print(f"Resolved: {stats['modules_resolved']}, "
          f"downloaded={stats['symbols_downloaded']}, cached={stats['symbols_cached']}, "
          f"failed={stats['symbols_failed'] + stats['patches_failed'] + stats['modules_failed']}")
    return 0


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == 'resolve':
            return run_resolve(args)

        filesystem = LocalFilesystem()
        if args.command == 'hash':
            print(filesystem.compute_content_hash(args.binary))
            return 0

        if args.command == 'cache-path':
            config = ResolverConfig.from_env(debug_symbol_root=args.root)
            cache = DebugSymbolCache(config.debug_symbol_root, filesystem)
            print(cache.resolve_path(filesystem.compute_content_hash(args.binary), args.file_name))
            return 0
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    parser.error(f"unknown command {args.command}")
    return 2
