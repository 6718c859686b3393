"""
Multi-target Runner.

Builds every target of a :class:`BuildConfig`. Targets are independent, so
several of them run in separate processes; each worker owns a disjoint set
of output files and its own build-info file.
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from typing import List, Optional

from tsc_multi.config import BuildConfig, TargetConfig
from tsc_multi.utils.console import set_verbose
from tsc_multi.worker import Worker, WorkerOptions

logger = logging.getLogger(__name__)


def build_worker_options(config: BuildConfig, target: TargetConfig) -> WorkerOptions:
  """
  Derives the input of one worker.

  Args:
      config (BuildConfig): Invocation configuration.
      target (TargetConfig): Target the worker builds.

  Returns:
      WorkerOptions: Options with absolute project paths and a report prefix.
  """
  return WorkerOptions(
    target=target,
    projects=config.resolved_projects(),
    cwd=config.cwd,
    compiler=config.compiler,
    verbose=config.verbose,
    dry=config.dry,
    force=config.force,
    clean=config.clean,
    transpile_only=config.transpile_only,
    watch=config.watch,
    report_prefix=target.label if len(config.targets) > 1 else None,
  )


def run_worker(options: WorkerOptions) -> int:
  """Process entry point; logging is configured again in the child."""
  set_verbose(options.verbose)
  return Worker(options).run()


def _pool_size(config: BuildConfig) -> int:
  limit = config.max_workers or os.cpu_count() or 1
  return max(1, min(limit, len(config.targets)))


def run_targets(config: BuildConfig, max_workers: Optional[int] = None) -> int:
  """
  Builds all targets.

  Args:
      config (BuildConfig): Invocation configuration.
      max_workers (Optional[int]): Overrides ``config.max_workers``.

  Returns:
      int: Highest worker exit code.
  """
  if max_workers is not None:
    config = config.model_copy(update={"max_workers": max_workers})

  all_options = [build_worker_options(config, target) for target in config.targets]
  pool_size = _pool_size(config)

  if pool_size <= 1:
    codes: List[int] = [run_worker(options) for options in all_options]
  else:
    logger.debug("Running %d targets on %d processes", len(all_options), pool_size)
    with ProcessPoolExecutor(max_workers=pool_size) as pool:
      codes = list(pool.map(run_worker, all_options))

  return max(codes, default=0)
