"""
File system layer: the host abstraction, its local and in-memory
implementations, and the rewriting overlay.
"""

from tsc_multi.system.adapter import (
  DEFAULT_READ_STRATEGIES,
  OriginalScriptStrategy,
  ReadStrategy,
  RewritingFileSystem,
  RewrittenPathStrategy,
)
from tsc_multi.system.base import FileSystem, LocalFileSystem
from tsc_multi.system.memory import MemoryFileSystem

__all__ = [
  "DEFAULT_READ_STRATEGIES",
  "FileSystem",
  "LocalFileSystem",
  "MemoryFileSystem",
  "OriginalScriptStrategy",
  "ReadStrategy",
  "RewritingFileSystem",
  "RewrittenPathStrategy",
]
