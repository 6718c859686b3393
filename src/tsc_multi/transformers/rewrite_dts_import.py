"""
Specifier Rewriter for emitted declaration files.

Handles the same constructs as :mod:`tsc_multi.transformers.rewrite_import`
and additionally catches module references the declaration emitter inlines
into type positions, for example when a value is not explicitly typed::

    export declare const EncodedSchemaChange: import("./schema").TObject<{
        new: import("./schema").TObject<{
            nodes: import("..").TRecord<import("./schema").TString>;
        }>;
    }>;

Simple references parse as ordinary ``import(...)`` calls. Nested in generic
arguments and object types they push the grammar into error recovery, which
leaves the literal as a ``string`` detached from any call. Those are found
positionally: a window holds the kinds of the last leaf tokens in source
order, and the grammar-specific signature comes from
:mod:`tsc_multi.syntax.node_kinds`. In ``import(...)`` positions a bare
``..`` counts as relative. Any relative ``import("...")`` left untouched
afterwards is logged so a grammar upgrade that breaks the signature does not
go unnoticed.
"""

import logging
import re
from typing import Optional, Sequence, Tuple

from tree_sitter import Node

from tsc_multi.syntax.node_kinds import (
  EmbeddedRefShape,
  KindWindow,
  looks_like_embedded_module_ref,
  shapes_for,
)
from tsc_multi.syntax.tree import STRING_KIND, SourceFile, language_abi_version
from tsc_multi.system.base import FileSystem
from tsc_multi.transformers.rewrite_import import RewriteImportTransformer, Walk
from tsc_multi.transformers.specifier import SpecifierUpdater, is_import_call

logger = logging.getLogger(__name__)

TYPE_IMPORT_PATTERN = re.compile(rb"""\bimport\(\s*(["'])(\.\.?(?:/[^"'\r\n]*)?)\1\s*\)""")


class DeclarationWalk(Walk):
  """Traversal state extended with the token kind window."""

  def __init__(self, source_file: SourceFile, updater: SpecifierUpdater, shapes: Sequence[EmbeddedRefShape]):
    super().__init__(source_file, updater)
    self.window = KindWindow()
    self.shapes = tuple(shapes)


class RewriteDtsImportTransformer(RewriteImportTransformer):
  """
  Post-declaration-emit transformer.

  Attributes:
      extname (str): Runtime extension that declaration specifiers carry.
      system (FileSystem): File system consulted for directory checks.
      shapes (Optional[Tuple[EmbeddedRefShape, ...]]): Explicit signatures;
          looked up from the grammar ABI version when None.
  """

  def __init__(
    self,
    extname: str,
    system: FileSystem,
    shapes: Optional[Sequence[EmbeddedRefShape]] = None,
  ):
    super().__init__(extname, system)
    self.shapes: Optional[Tuple[EmbeddedRefShape, ...]] = tuple(shapes) if shapes is not None else None

  def create_walk(self, source_file: SourceFile, updater: SpecifierUpdater) -> DeclarationWalk:
    shapes = self.shapes
    if shapes is None:
      shapes = shapes_for(language_abi_version(source_file.language))
    return DeclarationWalk(source_file, updater, shapes)

  def allows_parent_shorthand(self, site: Node) -> bool:
    return is_import_call(site)

  def visit(self, node: Node, walk: DeclarationWalk) -> bool:
    # Pre-order visits leaves in source order, whatever the recovery nesting.
    if node.type == STRING_KIND or node.child_count == 0:
      walk.window.push(node.type)

    if super().visit(node, walk):
      return True

    if node.type == STRING_KIND and looks_like_embedded_module_ref(walk.window.kinds, walk.shapes):
      self.rewrite_literal(node, walk, allow_parent_shorthand=True)
      return True

    return False

  def after_walk(self, walk: DeclarationWalk) -> None:
    source = walk.source_file.text.encode("utf-8")
    for match in TYPE_IMPORT_PATTERN.finditer(source):
      if match.start(1) in walk.visited_literals:
        continue
      line = source.count(b"\n", 0, match.start()) + 1
      logger.warning(
        "%s:%d: type-level module reference %s was not rewritten; the declaration grammar shape is not recognized",
        walk.source_file.output_path or walk.source_file.file_name,
        line,
        match.group(2).decode("utf-8"),
      )
