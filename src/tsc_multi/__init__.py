"""
tsc-multi Package.

Builds a TypeScript project into several module flavours at once (for
example CommonJS as ``.cjs`` next to ES modules as ``.mjs``). Each target
renames emitted artifacts to its own extension and rewrites every relative
module specifier in scripts and declarations to match.

Usage
-----

.. code-block:: python

    import tsc_multi

    exit_code = tsc_multi.build(
        targets=[
            {"extname": ".cjs", "module": "commonjs"},
            {"extname": ".mjs", "dtsExtName": ".d.mts", "module": "esnext"},
        ],
        projects=["tsconfig.json"],
    )

Path policy only
^^^^^^^^^^^^^^^^

.. code-block:: python

    from tsc_multi import PathPolicy

    PathPolicy(extname=".mjs").rewrite("dist/index.js")
    # 'dist/index.mjs'
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

from tsc_multi.config import BuildConfig, TargetConfig
from tsc_multi.errors import ConfigError, SourceMapError, TscMultiError, UnsupportedTreeError
from tsc_multi.paths import PathPolicy
from tsc_multi.runner import run_targets
from tsc_multi.worker import Worker, WorkerOptions

__version__ = "0.1.0"


def build(
  targets: List[Dict[str, Any]],
  projects: Optional[List[str]] = None,
  cwd: Optional[Path] = None,
  **options: Any,
) -> int:
  """
  Builds ``projects`` once per target.

  Args:
      targets (List[Dict[str, Any]]): Target definitions, as in ``tsc-multi.json``.
      projects (Optional[List[str]]): Project paths, default ``["tsconfig.json"]``.
      cwd (Optional[Path]): Working directory.
      **options: Further ``BuildConfig`` fields (``dry``, ``clean``, ...).

  Returns:
      int: 0 on success, 1 if any target reported errors.

  Raises:
      ConfigError: If the configuration is invalid.
  """
  overrides: Dict[str, Any] = {"targets": targets, **options}
  if projects:
    overrides["projects"] = projects
  config = BuildConfig.load(cwd=cwd, **overrides)
  return run_targets(config)


__all__ = [
  "BuildConfig",
  "ConfigError",
  "PathPolicy",
  "SourceMapError",
  "TargetConfig",
  "TscMultiError",
  "UnsupportedTreeError",
  "Worker",
  "WorkerOptions",
  "build",
  "run_targets",
  "__version__",
]
