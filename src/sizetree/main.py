from __future__ import annotations

"""
Main Entry Point.

Runs the CLI with a global exception hook, so an unexpected crash is
logged and reported on stderr with exit code 1 instead of a bare trace.
"""

import logging
import os
import sys
import traceback
from typing import Any

# Make `sizetree` importable when this file is executed as a script.
BASE_DIR = os.path.dirname(os.path.abspath(__file__))
SRC_DIR = os.path.dirname(BASE_DIR)
if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)


def global_exception_handler(exctype: type[BaseException], value: BaseException, tb: Any) -> None:
    """Log an unhandled exception with its stack trace and exit with code 1."""
    stack_trace = "".join(traceback.format_exception(exctype, value, tb))
    logging.getLogger("sizetree.supervisor").critical(f"FATAL EXCEPTION DETECTED: {value}")

    print("\n" + "=" * 80, file=sys.stderr)
    print("CRITICAL ERROR (SIZETREE CLI)", file=sys.stderr)
    print("=" * 80, file=sys.stderr)
    print(stack_trace, file=sys.stderr)
    sys.exit(1)


def main() -> int:
    sys.excepthook = global_exception_handler

    from sizetree.interface.cli.app import main as cli_main
    return cli_main()


if __name__ == "__main__":
    sys.exit(main())
