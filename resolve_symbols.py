#!/usr/bin/env python3
"""Launcher wrapper to keep top-level script while code lives in package.
"""

import sys

from dotenv import load_dotenv

# Load .env before any crash_symbols imports (so DEBUG_SYMBOL_ROOT etc. are set)
load_dotenv()


def main():
    from crash_symbols.cli import main as _package_main
    sys.exit(_package_main())


if __name__ == "__main__":
    main()
