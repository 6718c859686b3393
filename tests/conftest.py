"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- In-memory file systems for adapter and rewriter tests.
- Console isolation so handlers installed by one test do not leak.
"""

import sys
from pathlib import Path

import pytest

# Add src to path so we can import 'tsc_multi' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from tsc_multi.paths import PathPolicy  # noqa: E402
from tsc_multi.system.adapter import RewritingFileSystem  # noqa: E402
from tsc_multi.system.memory import MemoryFileSystem  # noqa: E402
from tsc_multi.utils.console import reset_console  # noqa: E402


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
  """An empty in-memory file system rooted at ``/``."""
  return MemoryFileSystem()


@pytest.fixture
def project_fs() -> MemoryFileSystem:
  """
  A small project tree::

      /project/src/index.ts
      /project/src/utils/index.ts
      /project/src/data.json
      /project/dist/index.js
  """
  return MemoryFileSystem(
    {
      "/project/src/index.ts": "export * from './utils';\n",
      "/project/src/utils/index.ts": "export const a = 1;\n",
      "/project/src/data.json": "{}\n",
      "/project/dist/index.js": "export * from './utils';\n",
    },
    cwd="/project",
  )


@pytest.fixture
def mjs_fs(project_fs: MemoryFileSystem) -> RewritingFileSystem:
  """The project tree seen through an ``.mjs`` / ``.d.mts`` target."""
  return RewritingFileSystem(project_fs, PathPolicy(extname=".mjs", dts_extname=".d.mts"))


@pytest.fixture(autouse=True)
def isolate_console():
  """Ensures the console proxy is back on stdout after every test."""
  yield
  reset_console()
