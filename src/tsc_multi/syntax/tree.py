"""
Syntax Trees for Emitted Artifacts.

Emitted scripts and declarations are parsed with tree-sitter (JavaScript
grammar for scripts, TypeScript grammar for declarations). Trees are never
mutated: transformers collect :class:`TextEdit` ranges against the source
bytes and :meth:`SourceFile.update` produces a fresh, re-parsed file.

Trees belong to a single transform call. Nothing here keeps a node alive
past the :class:`SourceFile` that produced it.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

import tree_sitter_javascript
import tree_sitter_typescript
from tree_sitter import Language, Node, Parser, Tree

logger = logging.getLogger(__name__)

_LANGUAGE_CACHE: Dict[str, Language] = {}

STRING_KIND = "string"
TYPESCRIPT_SUFFIXES = (".d.ts", ".ts", ".mts", ".cts", ".d.mts", ".d.cts")


class SyntaxLanguage(str, Enum):
  """Grammar used to parse an artifact."""

  JAVASCRIPT = "javascript"
  TYPESCRIPT = "typescript"


def get_language(language: SyntaxLanguage) -> Language:
  """
  Loads (and caches) the tree-sitter grammar for ``language``.

  Args:
      language (SyntaxLanguage): Grammar to load.

  Returns:
      Language: The tree-sitter language object.
  """
  cached = _LANGUAGE_CACHE.get(language.value)
  if cached is not None:
    return cached

  if language is SyntaxLanguage.TYPESCRIPT:
    lang = Language(tree_sitter_typescript.language_typescript())
  else:
    lang = Language(tree_sitter_javascript.language())

  _LANGUAGE_CACHE[language.value] = lang
  logger.debug("Loaded tree-sitter grammar '%s'", language.value)
  return lang


def language_abi_version(language: SyntaxLanguage) -> Optional[int]:
  """
  Returns the ABI version of the loaded grammar, used to key node-kind
  tables that shift between grammar releases.
  """
  lang = get_language(language)
  # py-tree-sitter renamed ``version`` to ``abi_version`` in 0.25.
  version = getattr(lang, "abi_version", None)
  if version is None:
    version = getattr(lang, "version", None)
  return version


def language_for_path(path: str) -> SyntaxLanguage:
  """
  Picks the grammar for an artifact path.

  Args:
      path (str): Output or source path.

  Returns:
      SyntaxLanguage: TypeScript for typed sources and declarations, JavaScript otherwise.
  """
  if path.endswith(TYPESCRIPT_SUFFIXES):
    return SyntaxLanguage.TYPESCRIPT
  return SyntaxLanguage.JAVASCRIPT


def parse(text: str, language: SyntaxLanguage) -> Tree:
  """
  Parses ``text`` into a concrete syntax tree.

  Args:
      text (str): Source text.
      language (SyntaxLanguage): Grammar to use.

  Returns:
      Tree: The parsed tree. Syntax errors are represented as ERROR nodes.
  """
  parser = Parser(get_language(language))
  return parser.parse(text.encode("utf-8"))


def node_text(node: Node) -> str:
  """Decodes the source text spanned by ``node``."""
  return node.text.decode("utf-8")


def string_literal_value(node: Node) -> Optional[str]:
  """
  Returns the value of a plain string literal.

  Template strings and literals holding escape sequences are not plain and
  yield None, so callers leave them untouched.

  Args:
      node (Node): Candidate literal node.

  Returns:
      Optional[str]: The unquoted value, or None.
  """
  if node.type != STRING_KIND:
    return None
  raw = node_text(node)
  if len(raw) < 2 or raw[0] not in "\"'" or raw[-1] != raw[0]:
    return None
  value = raw[1:-1]
  if "\\" in value:
    return None
  return value


@dataclass(frozen=True)
class TextEdit:
  """
  Replacement of the byte range ``[start_byte, end_byte)``.
  """

  start_byte: int
  end_byte: int
  replacement: str


def apply_edits(source: bytes, edits: Iterable[TextEdit]) -> bytes:
  """
  Applies non-overlapping edits to ``source``.

  Args:
      source (bytes): Original bytes.
      edits (Iterable[TextEdit]): Edits in any order.

  Returns:
      bytes: The patched bytes.

  Raises:
      ValueError: If two edits overlap.
  """
  ordered = sorted(edits, key=lambda e: e.start_byte, reverse=True)
  result = source
  boundary = len(source)
  for edit in ordered:
    if edit.end_byte > boundary:
      raise ValueError(f"Overlapping edit at byte {edit.start_byte}")
    result = result[: edit.start_byte] + edit.replacement.encode("utf-8") + result[edit.end_byte :]
    boundary = edit.start_byte
  return result


@dataclass
class SourceFile:
  """
  An emitted artifact together with its syntax tree.

  Attributes:
      file_name (str): Path of the originating source; relative specifiers
          are resolved against its directory.
      text (str): Artifact content.
      language (SyntaxLanguage): Grammar the tree was parsed with.
      tree (Tree): Parsed tree.
      output_path (Optional[str]): Where the artifact is emitted.
  """

  file_name: str
  text: str
  language: SyntaxLanguage
  tree: Any = None
  output_path: Optional[str] = None

  def __post_init__(self) -> None:
    if self.tree is None:
      self.tree = parse(self.text, self.language)

  @classmethod
  def from_text(
    cls,
    file_name: str,
    text: str,
    language: Optional[SyntaxLanguage] = None,
    output_path: Optional[str] = None,
  ) -> "SourceFile":
    """
    Parses artifact text.

    Args:
        file_name (str): Originating source path.
        text (str): Artifact content.
        language (Optional[SyntaxLanguage]): Grammar; derived from the output
            path (or file name) when omitted.
        output_path (Optional[str]): Emitted path.

    Returns:
        SourceFile: The parsed file.
    """
    if language is None:
      language = language_for_path(output_path or file_name)
    return cls(file_name=file_name, text=text, language=language, output_path=output_path)

  @property
  def root_node(self) -> Node:
    return self.tree.root_node

  def update(self, edits: List[TextEdit]) -> "SourceFile":
    """
    Returns a new file with ``edits`` applied and the tree re-parsed, or
    ``self`` when there is nothing to change.
    """
    if not edits:
      return self
    new_bytes = apply_edits(self.text.encode("utf-8"), edits)
    return SourceFile(
      file_name=self.file_name,
      text=new_bytes.decode("utf-8"),
      language=self.language,
      output_path=self.output_path,
    )


@dataclass
class Bundle:
  """
  Several source files concatenated into one output (``outFile``).
  Transformers operating per file reject this root.
  """

  file_name: str
  text: str = ""
  output_path: Optional[str] = None
  source_files: List[SourceFile] = field(default_factory=list)
