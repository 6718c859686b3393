"""
In-memory file system.

Keeps files in a dictionary keyed by normalized absolute POSIX paths. Used
for dry runs and to exercise the adapter and rewriters without touching disk.
"""

import posixpath
from typing import Dict, Iterable, List, Optional

from tsc_multi.system.base import FileSystem


class MemoryFileSystem(FileSystem):
  """
  Dictionary-backed file system.

  Directories exist implicitly for every ancestor of a stored file, or
  explicitly when created via ``make_directory``.
  """

  def __init__(self, files: Optional[Dict[str, str]] = None, cwd: str = "/"):
    self.cwd = cwd
    self.files: Dict[str, str] = {}
    self._directories = {"/"}
    self.deleted: List[str] = []
    for path, data in (files or {}).items():
      self.write_file(path, data)

  def get_current_directory(self) -> str:
    return self.cwd

  def resolve(self, path: str) -> str:
    if not posixpath.isabs(path):
      path = posixpath.join(self.cwd, path)
    return posixpath.normpath(path)

  def _register_parents(self, path: str) -> None:
    parent = posixpath.dirname(path)
    while parent not in self._directories:
      self._directories.add(parent)
      parent = posixpath.dirname(parent)

  def make_directory(self, path: str) -> None:
    """Creates ``path`` and all of its ancestors."""
    full = self.resolve(path)
    self._directories.add(full)
    self._register_parents(full)

  def file_exists(self, path: str) -> bool:
    return self.resolve(path) in self.files

  def directory_exists(self, path: str) -> bool:
    return self.resolve(path) in self._directories

  def read_file(self, path: str, encoding: str = "utf-8") -> Optional[str]:
    return self.files.get(self.resolve(path))

  def write_file(self, path: str, data: str, write_bom: bool = False) -> None:
    full = self.resolve(path)
    self._register_parents(full)
    self.files[full] = data

  def delete_file(self, path: str) -> None:
    full = self.resolve(path)
    if self.files.pop(full, None) is not None:
      self.deleted.append(full)

  def read_directory(self, path: str) -> List[str]:
    root = self.resolve(path).rstrip("/") + "/"
    return sorted(p for p in self.files if p.startswith(root))

  def listing(self) -> Iterable[str]:
    """Returns every stored file path, sorted."""
    return sorted(self.files)
