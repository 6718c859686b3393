"""
Tests for the Rewriting File System overlay.

Verifies:
1. Writes land at rewritten paths.
2. Reads try the rewritten path first, then the original `.js` path.
3. Source map comments and map `file` fields are patched on write.
4. Deletes target rewritten paths.
5. Malformed maps raise `SourceMapError`.
"""

import json

import pytest

from tsc_multi.errors import SourceMapError
from tsc_multi.paths import PathPolicy
from tsc_multi.system.adapter import (
  OriginalScriptStrategy,
  ReadStrategy,
  RewritingFileSystem,
  RewrittenPathStrategy,
)
from tsc_multi.system.memory import MemoryFileSystem


def make_fs(files=None, extname=".mjs", dts_extname=".d.mts"):
  base = MemoryFileSystem(files or {})
  return base, RewritingFileSystem(base, PathPolicy(extname=extname, dts_extname=dts_extname))


def test_write_script_renames_and_patches_map_comment():
  base, fs = make_fs()
  fs.write_file("/out/index.js", "export {};\n//# sourceMappingURL=index.js.map")

  assert base.listing() == ["/out/index.mjs"]
  assert base.read_file("/out/index.mjs") == "export {};\n//# sourceMappingURL=index.mjs.map"


def test_write_declaration_renames_and_patches_map_comment():
  base, fs = make_fs()
  fs.write_file("/out/index.d.ts", "export {};\n//# sourceMappingURL=index.d.ts.map")

  assert base.read_file("/out/index.d.mts") == "export {};\n//# sourceMappingURL=index.d.mts.map"


def test_write_source_map_rewrites_file_field_only():
  base, fs = make_fs()
  payload = {"version": 3, "file": "index.js", "sourceRoot": "", "sources": ["../src/index.ts"], "mappings": "AAAA"}
  fs.write_file("/out/index.js.map", json.dumps(payload, indent=2))

  written = base.read_file("/out/index.mjs.map")
  assert written is not None
  assert "\n" not in written

  data = json.loads(written)
  assert data["file"] == "index.mjs"
  assert data["sources"] == ["../src/index.ts"]
  assert data["mappings"] == "AAAA"


def test_write_declaration_map_rewrites_file_field():
  base, fs = make_fs()
  fs.write_file("/out/a.d.ts.map", '{"version":3,"file":"a.d.ts","sources":["../src/a.ts"],"mappings":""}')

  data = json.loads(base.read_file("/out/a.d.mts.map"))
  assert data["file"] == "a.d.mts"


def test_write_map_without_file_field_is_kept():
  base, fs = make_fs()
  fs.write_file("/out/a.js.map", '{"version":3,"mappings":""}')
  assert json.loads(base.read_file("/out/a.mjs.map")) == {"version": 3, "mappings": ""}


@pytest.mark.parametrize("data", ["{not json", "[1, 2]"])
def test_malformed_source_map_raises(data):
  base, fs = make_fs()
  with pytest.raises(SourceMapError):
    fs.write_file("/out/a.js.map", data)
  assert base.listing() == []


def test_unrelated_files_written_verbatim():
  base, fs = make_fs()
  fs.write_file("/out/tsconfig.tsbuildinfo", "//# sourceMappingURL=a.js.map")
  assert base.read_file("/out/tsconfig.tsbuildinfo") == "//# sourceMappingURL=a.js.map"


def test_unset_extensions_keep_names_and_content():
  base, fs = make_fs(extname=None, dts_extname=None)
  fs.write_file("/out/a.js", "//# sourceMappingURL=a.js.map")
  assert base.read_file("/out/a.js") == "//# sourceMappingURL=a.js.map"


def test_read_prefers_rewritten_path():
  _, fs = make_fs({"/out/a.mjs": "renamed", "/out/a.js": "original"})
  assert fs.read_file("/out/a.js") == "renamed"
  assert fs.file_exists("/out/a.js")


def test_read_falls_back_to_original_script():
  """
  Scenario: A pre-compiled `.js` source sits next to typed sources.
  Expectation: Reading it through the overlay finds the original file.
  """
  _, fs = make_fs({"/src/legacy.js": "module.exports = 1;"})
  assert fs.file_exists("/src/legacy.js")
  assert fs.read_file("/src/legacy.js") == "module.exports = 1;"


def test_read_declarations_are_not_rewritten():
  _, fs = make_fs({"/lib/lib.dom.d.ts": "declare var x: 1;"})
  assert fs.file_exists("/lib/lib.dom.d.ts")
  assert fs.read_file("/lib/lib.dom.d.ts") == "declare var x: 1;"


def test_read_missing_returns_none():
  _, fs = make_fs()
  assert fs.read_file("/nope.js") is None
  assert not fs.file_exists("/nope.js")
  assert fs.read_file("/nope.ts") is None


def test_read_paths_are_ordered_and_unique():
  _, fs = make_fs()
  assert fs.read_paths("/a.js") == ["/a.mjs", "/a.js"]
  assert fs.read_paths("/a.ts") == ["/a.ts"]

  _, identity = make_fs(extname=None)
  assert identity.read_paths("/a.js") == ["/a.js"]


def test_custom_read_strategy_is_additive():
  class SourceStrategy(ReadStrategy):
    def candidate(self, path, policy):
      return path[: -len(".js")] + ".ts" if path.endswith(".js") else None

  base = MemoryFileSystem({"/src/a.ts": "typed"})
  fs = RewritingFileSystem(
    base,
    PathPolicy(extname=".mjs"),
    read_strategies=[RewrittenPathStrategy(), OriginalScriptStrategy(), SourceStrategy()],
  )
  assert fs.read_paths("/src/a.js") == ["/src/a.mjs", "/src/a.js", "/src/a.ts"]
  assert fs.read_file("/src/a.js") == "typed"


def test_delete_targets_rewritten_path():
  base, fs = make_fs({"/out/a.js": "original", "/out/a.mjs": "renamed", "/out/a.d.mts": "types"})
  fs.delete_file("/out/a.js")
  fs.delete_file("/out/a.d.ts")

  assert base.listing() == ["/out/a.js"]
  assert base.deleted == ["/out/a.mjs", "/out/a.d.mts"]


def test_passthrough_attributes():
  base, fs = make_fs()
  base.make_directory("/out/sub")
  assert fs.directory_exists("/out/sub")
  assert fs.get_current_directory() == "/"
  # Capabilities not overridden by the overlay come from the wrapped system.
  assert fs.listing() == []
  assert fs.read_directory("/") == []
