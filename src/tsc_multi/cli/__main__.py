"""
Main Entry Point for the tsc-multi CLI.

This module handles argument parsing and dispatches to the command handler
defined in `tsc_multi.cli.commands`.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from tsc_multi import __version__
from tsc_multi.cli import commands


def build_parser() -> argparse.ArgumentParser:
  parser = argparse.ArgumentParser(
    prog="tsc-multi",
    description="tsc-multi: Compile a TypeScript project into multiple module flavours",
  )
  parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
  parser.add_argument("projects", nargs="*", help="Project config files or directories (default: tsconfig.json)")
  parser.add_argument("--config", type=Path, default=None, help="Config file (default: tsc-multi.json in cwd)")
  parser.add_argument("--cwd", type=Path, default=None, help="Working directory (default: current directory)")
  parser.add_argument("--compiler", default=None, help="Path of the tsc executable or its JavaScript entry point")
  parser.add_argument("--verbose", action="store_true", default=None, help="Print debug output")
  parser.add_argument("--dry", action="store_true", default=None, help="Show what would be written or deleted")
  parser.add_argument("--force", action="store_true", default=None, help="Rebuild ignoring incremental state")
  parser.add_argument("--clean", action="store_true", default=None, help="Delete the outputs of every target")
  parser.add_argument(
    "--transpile-only",
    action="store_true",
    default=None,
    help="Emit scripts without type checking or declarations",
  )
  parser.add_argument("--watch", action="store_true", default=None, help="Rebuild when inputs change")
  parser.add_argument("--max-workers", type=int, default=None, help="Maximum number of concurrent targets")
  return parser


def main(argv: Optional[List[str]] = None) -> int:
  """
  Main CLI entry point.

  Args:
      argv: Optional list of command line arguments (defaults to sys.argv).

  Returns:
      int: Exit code (0 for success, non-zero for failure).
  """
  args = build_parser().parse_args(argv)

  return commands.handle_build(
    projects=args.projects,
    config_path=args.config,
    cwd=args.cwd,
    compiler=args.compiler,
    verbose=args.verbose,
    dry=args.dry,
    force=args.force,
    clean=args.clean,
    transpile_only=args.transpile_only,
    watch=args.watch,
    max_workers=args.max_workers,
  )


if __name__ == "__main__":
  sys.exit(main())
