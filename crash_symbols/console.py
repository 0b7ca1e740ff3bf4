"""Console output helpers shared by the symbol pipeline."""
import sys

PREFIX = "[SYMBOL]"


def safe_print(msg: str):
    """Print message safely, handling unicode encoding issues on odd terminals."""
    try:
        print(msg)
    except UnicodeEncodeError:
        # Fallback: try with errors='replace'
        encoding = sys.stdout.encoding or 'utf-8'
        print(msg.encode(encoding, errors='replace').decode(encoding, errors='replace'))


def log(message: str):
    """Print a [SYMBOL] status line."""
    safe_print(f"{PREFIX} {message}")
