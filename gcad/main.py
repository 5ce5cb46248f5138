"""
Command-line entry point for the GCAD compiler.

Compiles one script to a G-code file. Prelude scripts, such as a library of
define_material() calls, run first and share state with the main script.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from gcad.config.machine_config import ConfigManager
from gcad.script_processor import ScriptProcessor
from gcad.utils.errors import GCadError

logger = logging.getLogger(__name__)


def _read_script(path: str) -> str:
    return Path(path).read_text(encoding="utf-8")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gcad",
        description="GCAD - compile parametric CNC machining scripts to G-code",
    )
    parser.add_argument(
        "input",
        help="GCAD script to compile",
    )
    parser.add_argument(
        "--output", "-o",
        required=True,
        help="G-code file to write",
    )
    parser.add_argument(
        "--config", "-c",
        help="Machine configuration JSON file (default: built-in router)",
    )
    parser.add_argument(
        "--prelude", "-p",
        action="append",
        default=[],
        help="Script to run before the input; may be repeated",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging, including the parse tree",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = None
    try:
        config = ConfigManager.load_config(args.config) if args.config else None
        processor = ScriptProcessor(config)
        preludes = []
        for path in args.prelude:
            preludes.append((_read_script(path), path))
        path = args.input
        source = _read_script(path)
        output = processor.compile(source, args.input, preludes)
    except GCadError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: cannot read {e.filename}: {e.strerror}", file=sys.stderr)
        return 1
    except UnicodeDecodeError:
        print(f"error: cannot decode {path} as UTF-8", file=sys.stderr)
        return 1

    try:
        Path(args.output).write_text(output, encoding="utf-8")
    except OSError as e:
        print(f"error: cannot write {args.output}: {e.strerror}", file=sys.stderr)
        return 1

    logger.info("Wrote %s", args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
