"""
Module Specifier Rules.

Decides what a relative module specifier becomes under a target extension.
Decisions rest only on the specifier's syntax and on whether it names a
directory on disk; there is no package.json lookup and no extension guessing.

Rules, in order:

1.  Not relative (``./`` or ``../``) -> unchanged.
2.  ``.cjs`` extension -> unchanged.
3.  Names a directory next to the containing source -> ``<specifier>/index<ext>``.
4.  ``.json`` with ``resolveJsonModule`` enabled -> unchanged.
5.  Already ends with ``<ext>`` -> unchanged.
6.  Otherwise strip a trailing ``.js`` and append ``<ext>``.
"""

import logging
import os
import posixpath
from typing import Any, Mapping, Optional, Tuple

from tree_sitter import Node

from tsc_multi.paths import CJS_EXT, JS_EXT, JSON_EXT, trim_suffix
from tsc_multi.system.base import FileSystem

logger = logging.getLogger(__name__)

PARENT_SHORTHAND = ".."


def is_relative_path(path: str) -> bool:
  return path.startswith("./") or path.startswith("../")


def extname(path: str) -> str:
  """
  Extension of the last path segment, ``""`` when there is none.

  Leading dots do not start an extension, so ``..`` and ``.hidden`` have none.
  """
  return posixpath.splitext(posixpath.basename(path))[1]


class SpecifierUpdater:
  """
  Applies the specifier rules for one target extension.

  Attributes:
      extname (str): Extension appended to rewritten specifiers.
      system (FileSystem): Used for directory checks.
      compiler_options (Mapping[str, Any]): Active host compiler options.
  """

  def __init__(self, extname: str, system: FileSystem, compiler_options: Optional[Mapping[str, Any]] = None):
    self.extname = extname
    self.system = system
    self.compiler_options = compiler_options or {}

  @property
  def resolve_json_module(self) -> bool:
    return bool(self.compiler_options.get("resolveJsonModule"))

  def is_directory(self, file_name: str, specifier: str) -> bool:
    """
    Checks whether ``specifier`` resolves to a directory relative to the
    directory holding ``file_name``.
    """
    full_path = os.path.normpath(os.path.join(os.path.dirname(file_name), specifier))
    return self.system.directory_exists(full_path)

  def update(self, file_name: str, specifier: str, allow_parent_shorthand: bool = False) -> str:
    """
    Rewrites a specifier.

    Args:
        file_name (str): Source file containing the specifier.
        specifier (str): Specifier value without quotes.
        allow_parent_shorthand (bool): Treat a bare ``..`` as relative.

    Returns:
        str: The new specifier, or ``specifier`` itself.
    """
    relative = is_relative_path(specifier) or (allow_parent_shorthand and specifier == PARENT_SHORTHAND)
    if not relative:
      return specifier

    ext = extname(specifier)
    if ext == CJS_EXT:
      return specifier

    if self.is_directory(file_name, specifier):
      return f"{specifier}/index{self.extname}"

    if ext == JSON_EXT and self.resolve_json_module:
      return specifier

    if specifier.endswith(self.extname):
      return specifier

    base = trim_suffix(specifier, JS_EXT)
    return f"{base}{self.extname}"


def _first_argument(call: Node) -> Optional[Node]:
  arguments = call.child_by_field_name("arguments")
  if arguments is None or arguments.type != "arguments":
    return None
  for child in arguments.named_children:
    if child.type != "comment":
      return child
  return None


def is_import_call(node: Node) -> bool:
  """True for a dynamic or type-level ``import(...)`` call."""
  if node.type != "call_expression":
    return False
  function = node.child_by_field_name("function")
  return function is not None and function.type == "import"


def find_module_specifier(node: Node) -> Tuple[bool, Optional[Node]]:
  """
  Recognizes the specifier-bearing constructs.

  * ``import ... from "x"`` / ``import "x"``
  * ``export ... from "x"``
  * ``import("x")``
  * ``require("x")``
  * ``import x = require("x")``

  Args:
      node (Node): Visited node.

  Returns:
      Tuple[bool, Optional[Node]]: Whether ``node`` is a specifier site, and the
      specifier expression when it has one.
  """
  kind = node.type

  if kind in ("import_statement", "export_statement"):
    source = node.child_by_field_name("source")
    # No source: an ordinary exported declaration, or `import x = require(...)`.
    if source is None:
      return False, None
    return True, source

  if kind == "import_require_clause":
    source = node.child_by_field_name("source")
    if source is None:
      source = next((c for c in node.named_children if c.type == "string"), None)
    return True, source

  if kind == "call_expression":
    function = node.child_by_field_name("function")
    if function is None:
      return False, None
    if function.type == "import":
      return True, _first_argument(node)
    if function.type == "identifier" and function.text == b"require":
      return True, _first_argument(node)

  return False, None
