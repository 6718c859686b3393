"""
Specifier Rewriter for emitted scripts.

Walks the whole tree depth-first (specifiers can sit at any depth, e.g. in
re-export barrels, nested functions or another call's arguments) and
rewrites the literal of every specifier-bearing construct found by
:func:`~tsc_multi.transformers.specifier.find_module_specifier`. The
original quote character is kept.
"""

import logging
from typing import List, Optional, Set, Tuple, Union

from tree_sitter import Node

from tsc_multi.syntax.tree import Bundle, SourceFile, TextEdit, string_literal_value
from tsc_multi.system.base import FileSystem
from tsc_multi.transformers.base import TransformationContext, Transformer, require_source_file
from tsc_multi.transformers.specifier import SpecifierUpdater, find_module_specifier

logger = logging.getLogger(__name__)

NodeKey = Tuple[int, int, str]


def node_key(node: Node) -> NodeKey:
  return (node.start_byte, node.end_byte, node.type)


class Walk:
  """
  State of one traversal: the file being rewritten, the rules in force and
  the edits collected so far.

  Attributes:
      visited_literals (Set[int]): Start offsets of every specifier literal
          already handled.
      handled (Set[NodeKey]): Literals the traversal must not enter again.
  """

  def __init__(self, source_file: SourceFile, updater: SpecifierUpdater):
    self.source_file = source_file
    self.updater = updater
    self.edits: List[TextEdit] = []
    self.visited_literals: Set[int] = set()
    self.handled: Set[NodeKey] = set()


class RewriteImportTransformer(Transformer):
  """
  Post-emit transformer rewriting module specifiers in scripts.

  Attributes:
      extname (str): Target script extension.
      system (FileSystem): File system consulted for directory checks.
  """

  def __init__(self, extname: str, system: FileSystem):
    self.extname = extname
    self.system = system

  def transform(self, node: Union[SourceFile, Bundle], context: TransformationContext) -> SourceFile:
    source_file = require_source_file(node)
    updater = SpecifierUpdater(self.extname, self.system, context.get_compiler_options())
    walk = self.create_walk(source_file, updater)

    stack: List[Node] = [source_file.root_node]
    while stack:
      current = stack.pop()
      if node_key(current) in walk.handled:
        continue
      self.visit(current, walk)
      if node_key(current) in walk.handled:
        continue
      stack.extend(reversed(current.children))
    self.after_walk(walk)

    return source_file.update(walk.edits)

  def create_walk(self, source_file: SourceFile, updater: SpecifierUpdater) -> Walk:
    return Walk(source_file, updater)

  def after_walk(self, walk: Walk) -> None:
    """Hook run once every node has been visited."""

  def allows_parent_shorthand(self, site: Node) -> bool:
    """Whether a bare ``..`` counts as relative at ``site``."""
    return False

  def visit(self, node: Node, walk: Walk) -> bool:
    """
    Handles one node in pre-order.

    The traversal still enters the children of a specifier site, minus the
    literal rewritten here, so sites nested in its arguments are found too.

    Args:
        node (Node): Visited node.
        walk (Walk): Traversal state.

    Returns:
        bool: True if the node is a specifier site.
    """
    is_site, specifier = find_module_specifier(node)
    if not is_site:
      return False
    if specifier is not None:
      self.rewrite_literal(specifier, walk, self.allows_parent_shorthand(node))
    return True

  def rewrite_literal(self, literal: Node, walk: Walk, allow_parent_shorthand: bool = False) -> Optional[str]:
    """
    Rewrites a specifier literal in place.

    Args:
        literal (Node): Specifier expression.
        walk (Walk): Traversal state.
        allow_parent_shorthand (bool): Treat a bare ``..`` as relative.

    Returns:
        Optional[str]: The new value if the literal changed.
    """
    value = string_literal_value(literal)
    if value is None:
      return None
    walk.visited_literals.add(literal.start_byte)
    walk.handled.add(node_key(literal))

    updated = walk.updater.update(walk.source_file.file_name, value, allow_parent_shorthand)
    if updated == value:
      return None

    logger.debug("%s: rewriting specifier %s ==> %s", walk.source_file.file_name, value, updated)
    # Keep the quotes, replace only the characters between them.
    walk.edits.append(TextEdit(literal.start_byte + 1, literal.end_byte - 1, updated))
    return updated
