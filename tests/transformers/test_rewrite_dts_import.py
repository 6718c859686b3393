"""
Tests for the declaration Specifier Rewriter.

Ordinary import/export shapes and the inlined type references the
declaration emitter produces run against the real TypeScript grammar. The
window matching itself is also exercised with hand-built token lists, so a
shape the table does not know can be simulated.
"""

import logging

import pytest

from tsc_multi.errors import UnsupportedTreeError
from tsc_multi.syntax.node_kinds import EmbeddedRefShape
from tsc_multi.syntax.tree import Bundle, SourceFile, SyntaxLanguage
from tsc_multi.transformers.base import TransformationContext
from tsc_multi.transformers.rewrite_dts_import import RewriteDtsImportTransformer

IMPORT_CALL = (EmbeddedRefShape(preceding=("(", "import")),)


class FakeNode:
  """Minimal stand-in for a tree-sitter node."""

  def __init__(self, kind, source=b"", start=0, end=0, children=()):
    self.type = kind
    self.start_byte = start
    self.end_byte = end
    self.text = source[start:end]
    self.children = list(children)
    self.child_count = len(self.children)
    self.named_children = [c for c in self.children if c.type.isidentifier()]

  def child_by_field_name(self, name):
    return None


class FakeTree:
  def __init__(self, root):
    self.root_node = root


def token_nodes(source, tokens):
  """
  Builds a flat node list for ``tokens``, each (kind, text) located in order
  in ``source``.
  """
  nodes = []
  offset = 0
  for kind, text in tokens:
    start = source.index(text.encode("utf-8"), offset)
    end = start + len(text.encode("utf-8"))
    nodes.append(FakeNode(kind, source, start, end))
    offset = end
  return nodes


def fake_source_file(text, tokens, file_name="/project/src/utils/index.ts"):
  source = text.encode("utf-8")
  root = FakeNode("program", source, 0, len(source), token_nodes(source, tokens))
  return SourceFile(
    file_name=file_name,
    text=text,
    language=SyntaxLanguage.TYPESCRIPT,
    tree=FakeTree(root),
    output_path="/project/dist/utils/index.d.ts",
  )


def transform(source_file, system, extname=".mjs", shapes=IMPORT_CALL, options=None):
  transformer = RewriteDtsImportTransformer(extname, system, shapes=shapes)
  return transformer(source_file, TransformationContext(options or {})).text


EMBEDDED = 'export declare const S: import("./schema").T<import("..").R>;\n'
EMBEDDED_TOKENS = [
  ("export", "export"),
  ("identifier", "S"),
  ("import", "import"),
  ("(", "("),
  ("string", '"./schema"'),
  (")", ")"),
  ("type_identifier", "T"),
  ("import", "import"),
  ("(", "("),
  ("string", '".."'),
  (")", ")"),
  ("type_identifier", "R"),
]


def test_embedded_references_rewritten(project_fs):
  out = transform(fake_source_file(EMBEDDED, EMBEDDED_TOKENS), project_fs)
  assert out == 'export declare const S: import("./schema.mjs").T<import("../index.mjs").R>;\n'


def test_embedded_references_are_fixed_point(project_fs):
  once = 'export declare const S: import("./schema.mjs").T<import("../index.mjs").R>;\n'
  tokens = [(k, t.replace('"./schema"', '"./schema.mjs"').replace('".."', '"../index.mjs"')) for k, t in EMBEDDED_TOKENS]
  assert transform(fake_source_file(once, tokens), project_fs) == once


def test_embedded_exemptions(project_fs):
  text = 'export declare const S: import("./legacy.cjs").T;\nexport declare const D: import("./data.json").T;\n'
  tokens = [
    ("import", "import"),
    ("(", "("),
    ("string", '"./legacy.cjs"'),
    ("import", "import"),
    ("(", "("),
    ("string", '"./data.json"'),
  ]
  out = transform(fake_source_file(text, tokens), project_fs, options={"resolveJsonModule": True})
  assert out == text


def test_string_outside_shape_untouched(project_fs, caplog):
  text = 'export declare const S: "./not-a-module";\n'
  tokens = [("export", "export"), (":", ":"), ("string", '"./not-a-module"')]
  with caplog.at_level(logging.WARNING):
    assert transform(fake_source_file(text, tokens), project_fs) == text
  assert "was not rewritten" not in caplog.text


def test_unmatched_type_reference_is_logged(project_fs, caplog):
  """
  Scenario: The grammar shapes an inlined reference in a way the table does not know.
  Expectation: The text is left alone and a warning names the file and line.
  """
  shapes = (EmbeddedRefShape(preceding=("arguments", "import")),)
  with caplog.at_level(logging.WARNING, logger="tsc_multi.transformers.rewrite_dts_import"):
    out = transform(fake_source_file(EMBEDDED, EMBEDDED_TOKENS), project_fs, shapes=shapes)

  assert out == EMBEDDED
  assert "/project/dist/utils/index.d.ts:1" in caplog.text
  assert "./schema" in caplog.text


def test_ordinary_declaration_shapes_real_grammar(project_fs):
  code = (
    'export { A } from "./a";\n'
    'import type { B } from "../b.js";\n'
    'export * from "./utils";\n'
    'import { C } from "..";\n'
    'export declare const x: number;\n'
  )
  source_file = SourceFile.from_text("/project/src/index.ts", code, language=SyntaxLanguage.TYPESCRIPT)
  out = transform(source_file, project_fs, shapes=None)
  assert out == (
    'export { A } from "./a.mjs";\n'
    'import type { B } from "../b.mjs";\n'
    'export * from "./utils/index.mjs";\n'
    'import { C } from "..";\n'
    'export declare const x: number;\n'
  )


def test_import_require_clause_real_grammar(project_fs):
  code = 'import legacy = require("./legacy");\nexport = legacy;\n'
  source_file = SourceFile.from_text("/project/src/index.ts", code, language=SyntaxLanguage.TYPESCRIPT)
  out = transform(source_file, project_fs, extname=".cjs", shapes=None)
  assert out.startswith('import legacy = require("./legacy.cjs");')


INLINE_SOURCE = "/project/src/utils/index.ts"


def rewrite_declaration(code, system, file_name=INLINE_SOURCE, **kwargs):
  source_file = SourceFile.from_text(file_name, code, language=SyntaxLanguage.TYPESCRIPT)
  return transform(source_file, system, shapes=None, **kwargs)


def test_inline_type_import_real_grammar(project_fs, caplog):
  code = 'export declare const S: import("../a").TObject;\n'
  with caplog.at_level(logging.WARNING, logger="tsc_multi.transformers.rewrite_dts_import"):
    out = rewrite_declaration(code, project_fs)
  assert out == 'export declare const S: import("../a.mjs").TObject;\n'
  assert "was not rewritten" not in caplog.text


def test_parent_shorthand_in_type_import_real_grammar(project_fs):
  code = 'export declare const S: import("..").T;\n'
  assert rewrite_declaration(code, project_fs) == 'export declare const S: import("../index.mjs").T;\n'


def test_parent_shorthand_stays_unresolved_in_static_import(project_fs):
  code = 'import { C } from "..";\n'
  assert rewrite_declaration(code, project_fs) == code


def test_nested_type_imports_real_grammar(project_fs, caplog):
  """
  Scenario: References nested in generic arguments and object types, which the
      grammar only parses through error recovery.
  Expectation: Every reference is rewritten and nothing is left to warn about.
  """
  code = (
    'export declare const S: import("../x").TObject<{ nodes: import("../x").TRecord<'
    'import("../x").TString, import("../x").TObject<{ k: 1 }>>; }>;\n'
  )
  with caplog.at_level(logging.WARNING, logger="tsc_multi.transformers.rewrite_dts_import"):
    out = rewrite_declaration(code, project_fs)
  assert out == code.replace('"../x"', '"../x.mjs"')
  assert "was not rewritten" not in caplog.text


def test_emitted_schema_declaration_real_grammar(project_fs, caplog):
  code = (
    'export declare const EncodedSchemaChange: import("../schema").TObject<{\n'
    '    new: import("../schema").TObject<{\n'
    '        nodes: import("..").TRecord<import("../schema").TString>;\n'
    "    }>;\n"
    "}>;\n"
  )
  with caplog.at_level(logging.WARNING, logger="tsc_multi.transformers.rewrite_dts_import"):
    out = rewrite_declaration(code, project_fs)
  assert out == (
    'export declare const EncodedSchemaChange: import("../schema.mjs").TObject<{\n'
    '    new: import("../schema.mjs").TObject<{\n'
    '        nodes: import("../index.mjs").TRecord<import("../schema.mjs").TString>;\n'
    "    }>;\n"
    "}>;\n"
  )
  assert "was not rewritten" not in caplog.text


def test_bundle_is_rejected(project_fs):
  with pytest.raises(UnsupportedTreeError):
    transform(Bundle(file_name="/project/dist/out.d.ts"), project_fs)
