"""
Tests for the script Specifier Rewriter.

Runs the transformer over JavaScript parsed with the real grammar and checks
the emitted text.
"""

import pytest

from tsc_multi.errors import UnsupportedTreeError
from tsc_multi.syntax.tree import Bundle, SourceFile, SyntaxLanguage
from tsc_multi.transformers.base import CustomTransformers, TransformationContext, apply_transformers
from tsc_multi.transformers.rewrite_import import RewriteImportTransformer

SOURCE = "/project/src/index.ts"


def run(code, system, extname=".mjs", options=None, file_name=SOURCE):
  source_file = SourceFile.from_text(file_name, code, language=SyntaxLanguage.JAVASCRIPT, output_path="/project/dist/index.js")
  transformer = RewriteImportTransformer(extname, system)
  return transformer(source_file, TransformationContext(options or {})).text


def test_static_imports_and_exports(project_fs):
  code = (
    'import a from "./a";\n'
    "import { b } from './b.js';\n"
    'import "./side-effect";\n'
    'export * from "./utils";\n'
    'export { c } from "../c";\n'
  )
  expected = (
    'import a from "./a.mjs";\n'
    "import { b } from './b.mjs';\n"
    'import "./side-effect.mjs";\n'
    'export * from "./utils/index.mjs";\n'
    'export { c } from "../c.mjs";\n'
  )
  assert run(code, project_fs) == expected


def test_require_and_dynamic_import_rewrite_like_static_imports(project_fs):
  code = 'const bar = require("./bar");\nconst lazy = import("./bar");\n'
  assert run(code, project_fs) == 'const bar = require("./bar.mjs");\nconst lazy = import("./bar.mjs");\n'


def test_nested_sites_are_found(project_fs):
  code = (
    "function load() {\n"
    "  if (x) {\n"
    "    return import('./deep').then(() => require('./deeper'));\n"
    "  }\n"
    "}\n"
  )
  out = run(code, project_fs)
  assert "import('./deep.mjs')" in out
  assert "require('./deeper.mjs')" in out


def test_sites_nested_in_site_arguments(project_fs):
  code = 'const z = import(require("./n"));\nconst w = require(require.resolve("../w"));\n'
  assert run(code, project_fs) == 'const z = import(require("./n.mjs"));\nconst w = require(require.resolve("../w"));\n'


def test_non_rewritable_specifiers_unchanged(project_fs):
  code = (
    'import fs from "fs";\n'
    'import pkg from "@scope/pkg";\n'
    'import legacy from "./legacy.cjs";\n'
    "const t = require(`./template`);\n"
    "const v = require(name);\n"
    'const m = obj.require("./member");\n'
    "export const local = 1;\n"
  )
  assert run(code, project_fs) == code


def test_json_respects_resolve_json_module(project_fs):
  code = 'import data from "./data.json";\n'
  assert run(code, project_fs, options={"resolveJsonModule": True}) == code
  assert run(code, project_fs) == 'import data from "./data.json.mjs";\n'


def test_dynamic_import_with_leading_comment(project_fs):
  code = 'import(/* chunk */ "./lazy");\n'
  assert run(code, project_fs) == 'import(/* chunk */ "./lazy.mjs");\n'


def test_rewrite_is_fixed_point(project_fs):
  code = 'export * from "./utils";\nimport a from "./a.js";\nrequire("./b");\n'
  once = run(code, project_fs)
  assert run(once, project_fs) == once


def test_unchanged_file_keeps_identity(project_fs):
  source_file = SourceFile.from_text(SOURCE, "const x = 1;\n", language=SyntaxLanguage.JAVASCRIPT)
  result = RewriteImportTransformer(".mjs", project_fs)(source_file, TransformationContext())
  assert result is source_file


def test_cjs_target(project_fs):
  code = 'const a = require("./a.js");\n'
  assert run(code, project_fs, extname=".cjs") == 'const a = require("./a.cjs");\n'


def test_bundle_is_rejected(project_fs):
  bundle = Bundle(file_name="/project/dist/out.js", text="")
  with pytest.raises(UnsupportedTreeError, match="bundles"):
    RewriteImportTransformer(".mjs", project_fs)(bundle, TransformationContext())


def test_apply_transformers_chains(project_fs):
  source_file = SourceFile.from_text(SOURCE, 'import "./a";\n', language=SyntaxLanguage.JAVASCRIPT)
  registration = CustomTransformers(after=[RewriteImportTransformer(".mjs", project_fs)])
  result = apply_transformers(registration.after, source_file, TransformationContext())
  assert result.text == 'import "./a.mjs";\n'
  assert apply_transformers([], source_file, TransformationContext()) is source_file
