"""
Rewriting File System Adapter.

An overlay on a :class:`FileSystem` that makes the host compiler write its
artifacts under a target's extension policy while every read keeps working
against the original on-disk layout.

* **Reads** (``file_exists`` / ``read_file``) try an ordered list of read
  strategies. Each strategy proposes a candidate path for the requested one;
  the first candidate that exists (or yields content) wins. By default the
  rewritten path is tried first, then the untouched path for ``.js`` sources
  so pre-compiled scripts can live next to typed sources.
* **Writes** land at the rewritten path. Script and declaration text gets its
  ``//# sourceMappingURL=`` comment rewritten; source maps get their ``file``
  field rewritten.
* **Deletes** target the rewritten path.

Everything else is forwarded to the wrapped file system untouched.
"""

import json
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from tsc_multi.enums import OutputRole
from tsc_multi.errors import SourceMapError
from tsc_multi.paths import JS_EXT, PathPolicy, classify
from tsc_multi.system.base import FileSystem

logger = logging.getLogger(__name__)

SOURCE_MAPPING_URL_PATTERN = re.compile(r"//# sourceMappingURL=([^\r\n]+)")


class ReadStrategy(ABC):
  """
  Proposes an alternative path to read for a requested path.
  """

  @abstractmethod
  def candidate(self, path: str, policy: PathPolicy) -> Optional[str]:
    """
    Args:
        path (str): Path requested by the host compiler.
        policy (PathPolicy): Active extension policy.

    Returns:
        Optional[str]: Path to try, or None if this strategy does not apply.
    """


class RewrittenPathStrategy(ReadStrategy):
  """
  Reads the renamed artifact. Declaration paths are never rewritten on read,
  otherwise the compiler's bundled ``lib.*.d.ts`` files could not be found.
  """

  def candidate(self, path: str, policy: PathPolicy) -> Optional[str]:
    return policy.rewrite(path, ignore_declarations=True)


class OriginalScriptStrategy(ReadStrategy):
  """
  Falls back to an unrenamed ``.js`` file, for sources compiled with
  ``allowJs`` that coexist with typed sources.
  """

  def candidate(self, path: str, policy: PathPolicy) -> Optional[str]:
    if path.endswith(JS_EXT):
      return path
    return None


DEFAULT_READ_STRATEGIES: Sequence[ReadStrategy] = (RewrittenPathStrategy(), OriginalScriptStrategy())


class RewritingFileSystem(FileSystem):
  """
  Overlay applying a :class:`PathPolicy` to a wrapped file system.

  Attributes:
      base (FileSystem): The wrapped file system.
      policy (PathPolicy): The target's extension configuration.
      read_strategies (Sequence[ReadStrategy]): Ordered read candidates.
  """

  def __init__(
    self,
    base: FileSystem,
    policy: PathPolicy,
    read_strategies: Optional[Sequence[ReadStrategy]] = None,
  ):
    self.base = base
    self.policy = policy
    self.read_strategies = tuple(read_strategies or DEFAULT_READ_STRATEGIES)

  def read_paths(self, path: str) -> List[str]:
    """
    Computes the ordered, de-duplicated candidate paths for a read.

    Args:
        path (str): Requested path.

    Returns:
        List[str]: Candidates in strategy order.
    """
    paths: List[str] = []
    for strategy in self.read_strategies:
      candidate = strategy.candidate(path, self.policy)
      if candidate is not None and candidate not in paths:
        paths.append(candidate)
    return paths

  def rewrite_path(self, path: str) -> str:
    """Output path for a write or delete."""
    return self.policy.rewrite(path)

  def get_current_directory(self) -> str:
    return self.base.get_current_directory()

  def resolve(self, path: str) -> str:
    return self.base.resolve(path)

  def file_exists(self, path: str) -> bool:
    return any(self.base.file_exists(candidate) for candidate in self.read_paths(path))

  def directory_exists(self, path: str) -> bool:
    return self.base.directory_exists(path)

  def read_file(self, path: str, encoding: str = "utf-8") -> Optional[str]:
    for candidate in self.read_paths(path):
      data = self.base.read_file(candidate, encoding)
      if data is not None:
        return data
    return None

  def write_file(self, path: str, data: str, write_bom: bool = False) -> None:
    new_path = self.rewrite_path(path)
    new_data = self.patch_content(path, data)
    logger.debug("Write file: %s", new_path)
    self.base.write_file(new_path, new_data, write_bom)

  def delete_file(self, path: str) -> None:
    new_path = self.rewrite_path(path)
    logger.debug("Delete file: %s", new_path)
    self.base.delete_file(new_path)

  def patch_content(self, path: str, data: str) -> str:
    """
    Rewrites the cross references an artifact holds to its renamed siblings.

    Args:
        path (str): Original (unrewritten) output path.
        data (str): Emitted content.

    Returns:
        str: Content with the source-map comment or ``file`` field updated.

    Raises:
        SourceMapError: If ``path`` is a map and ``data`` is not a JSON object.
    """
    role = classify(path)
    if role in (OutputRole.SCRIPT, OutputRole.DECLARATION):
      return self.rewrite_source_mapping_url(data)
    if role in (OutputRole.SCRIPT_MAP, OutputRole.DECLARATION_MAP):
      return self.rewrite_source_map(path, data)
    return data

  def rewrite_source_mapping_url(self, data: str) -> str:
    def _replace(match: "re.Match[str]") -> str:
      old = match.group(1)
      new = self.policy.rewrite(old)
      logger.debug("replacing sourceMappingURL path: %s ==> %s", old, new)
      return f"//# sourceMappingURL={new}"

    return SOURCE_MAPPING_URL_PATTERN.sub(_replace, data)

  def rewrite_source_map(self, path: str, data: str) -> str:
    try:
      payload = json.loads(data)
    except json.JSONDecodeError as e:
      raise SourceMapError(path, str(e)) from e

    if not isinstance(payload, dict):
      raise SourceMapError(path, "expected a JSON object")

    if isinstance(payload.get("file"), str):
      new_file = self.policy.rewrite(payload["file"])
      logger.debug("rewriting sourcemap: %s ==> %s", payload["file"], new_file)
      payload["file"] = new_file

    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))

  def __getattr__(self, name: str) -> Any:
    """
    Forwards any capability not overridden here to the wrapped file system.
    """
    if name == "base":
      raise AttributeError(name)
    return getattr(self.base, name)
