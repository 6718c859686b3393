"""
Host File System Abstraction.

Defines the narrow file-system surface the host compiler and the rewriters
rely on, plus the implementation backed by the local disk. Semantics follow
the host compiler's own system object: ``read_file`` returns None for a
missing file instead of raising, and ``write_file`` creates missing parent
directories.
"""

import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

UTF8_BOM = "\ufeff"


class FileSystem(ABC):
  """
  Abstract file system consumed by the build pipeline.
  """

  @abstractmethod
  def file_exists(self, path: str) -> bool:
    """Returns True if ``path`` names an existing regular file."""

  @abstractmethod
  def directory_exists(self, path: str) -> bool:
    """Returns True if ``path`` names an existing directory."""

  @abstractmethod
  def read_file(self, path: str, encoding: str = "utf-8") -> Optional[str]:
    """Returns the text content of ``path``, or None if it does not exist."""

  @abstractmethod
  def write_file(self, path: str, data: str, write_bom: bool = False) -> None:
    """Writes ``data`` to ``path``, creating parent directories as needed."""

  @abstractmethod
  def delete_file(self, path: str) -> None:
    """Deletes ``path`` if it exists."""

  def get_current_directory(self) -> str:
    """Returns the directory relative paths are resolved against."""
    return os.getcwd()

  def resolve(self, path: str) -> str:
    """
    Makes ``path`` absolute against the current directory and normalizes it.

    Args:
        path (str): Relative or absolute path.

    Returns:
        str: Normalized absolute path.
    """
    if not os.path.isabs(path):
      path = os.path.join(self.get_current_directory(), path)
    return os.path.normpath(path)


class LocalFileSystem(FileSystem):
  """
  File system backed by the local disk.

  Attributes:
      cwd (Path): Base directory for relative paths.
  """

  def __init__(self, cwd: Optional[Path] = None):
    self.cwd = Path(cwd) if cwd else Path.cwd()

  def get_current_directory(self) -> str:
    return str(self.cwd)

  def file_exists(self, path: str) -> bool:
    return Path(self.resolve(path)).is_file()

  def directory_exists(self, path: str) -> bool:
    return Path(self.resolve(path)).is_dir()

  def read_file(self, path: str, encoding: str = "utf-8") -> Optional[str]:
    target = Path(self.resolve(path))
    if not target.is_file():
      return None
    text = target.read_text(encoding=encoding)
    # The host compiler never hands a BOM to its consumers.
    if text.startswith(UTF8_BOM):
      text = text[1:]
    return text

  def write_file(self, path: str, data: str, write_bom: bool = False) -> None:
    target = Path(self.resolve(path))
    target.parent.mkdir(parents=True, exist_ok=True)
    if write_bom:
      data = UTF8_BOM + data
    with open(target, "wt", encoding="utf-8", newline="") as f:
      f.write(data)

  def delete_file(self, path: str) -> None:
    target = Path(self.resolve(path))
    if target.is_file():
      target.unlink()

  def read_directory(self, path: str) -> List[str]:
    """
    Lists the files below ``path`` recursively.

    Args:
        path (str): Directory to walk.

    Returns:
        List[str]: Absolute file paths, sorted.
    """
    root = Path(self.resolve(path))
    if not root.is_dir():
      return []
    return sorted(str(p) for p in root.rglob("*") if p.is_file())
