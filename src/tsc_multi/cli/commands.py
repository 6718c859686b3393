"""
CLI Command Handlers.
"""

from pathlib import Path
from typing import List, Optional

from tsc_multi.config import BuildConfig
from tsc_multi.errors import ConfigError
from tsc_multi.runner import run_targets
from tsc_multi.utils.console import log_error, log_success, set_verbose


def handle_build(
  projects: List[str],
  config_path: Optional[Path] = None,
  cwd: Optional[Path] = None,
  compiler: Optional[str] = None,
  verbose: Optional[bool] = None,
  dry: Optional[bool] = None,
  force: Optional[bool] = None,
  clean: Optional[bool] = None,
  transpile_only: Optional[bool] = None,
  watch: Optional[bool] = None,
  max_workers: Optional[int] = None,
) -> int:
  """
  Handles a ``tsc-multi`` invocation.

  Loads the config file, applies the command line values on top and runs
  every target. Flags left as None keep the config file's value.

  Args:
      projects: Project paths; empty keeps the configured projects.
      config_path: Explicit config file.
      cwd: Working directory.
      compiler: ``tsc`` override.
      verbose: Enable debug output.
      dry: Report writes and deletes without performing them.
      force: Drop incremental state before building.
      clean: Delete outputs instead of building.
      transpile_only: Skip type checking and declarations.
      watch: Rebuild when inputs change.
      max_workers: Limit on concurrent targets.

  Returns:
      int: Exit code.
  """
  if verbose:
    set_verbose(True)

  try:
    config = BuildConfig.load(
      config_path=config_path,
      cwd=cwd,
      projects=projects,
      compiler=compiler,
      verbose=verbose,
      dry=dry,
      force=force,
      clean=clean,
      transpile_only=transpile_only,
      watch=watch,
      max_workers=max_workers,
    )
  except ConfigError as e:
    log_error(str(e))
    return 1

  set_verbose(config.verbose)

  try:
    code = run_targets(config)
  except ConfigError as e:
    log_error(str(e))
    return 1

  if code == 0 and not config.dry:
    log_success("Done" if not config.clean else "Cleaned")
  return code
