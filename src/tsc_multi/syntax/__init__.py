"""
Syntax layer: tree-sitter parsing of emitted artifacts and the node-kind
tables the rewriters depend on.
"""

from tsc_multi.syntax.node_kinds import (
  EMBEDDED_MODULE_REF_SHAPES,
  EmbeddedRefShape,
  KindWindow,
  looks_like_embedded_module_ref,
  shapes_for,
)
from tsc_multi.syntax.tree import (
  Bundle,
  SourceFile,
  SyntaxLanguage,
  TextEdit,
  apply_edits,
  language_for_path,
  parse,
  string_literal_value,
)

__all__ = [
  "Bundle",
  "EMBEDDED_MODULE_REF_SHAPES",
  "EmbeddedRefShape",
  "KindWindow",
  "SourceFile",
  "SyntaxLanguage",
  "TextEdit",
  "apply_edits",
  "language_for_path",
  "looks_like_embedded_module_ref",
  "parse",
  "shapes_for",
  "string_literal_value",
]
