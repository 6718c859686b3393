"""
Tests for the output layout derived from a parsed project configuration.
"""

from tsc_multi.host.base import HostCompiler, ParsedConfig, is_incremental_compilation
from tsc_multi.system.memory import MemoryFileSystem


def make_config(**options):
  return ParsedConfig(
    config_path="/project/tsconfig.json",
    options=options,
    file_names=["/project/src/index.ts", "/project/src/lib/util.ts", "/project/src/types.d.ts"],
  )


def test_is_incremental():
  assert is_incremental_compilation({"incremental": True})
  assert is_incremental_compilation({"composite": True})
  assert not is_incremental_compilation({})


def test_root_dir_is_common_source_dir():
  assert make_config(outDir="/project/dist").root_dir == "/project/src"
  assert make_config(outDir="/project/dist", rootDir="/project").root_dir == "/project"
  assert make_config(outDir="/project/dist", composite=True).root_dir == "/project"


def test_build_info_path():
  assert make_config(outDir="/project/dist").build_info_path is None
  assert make_config(incremental=True).build_info_path == "/project/tsconfig.tsbuildinfo"
  assert make_config(incremental=True, outDir="/project/dist").build_info_path == "/project/dist/tsconfig.tsbuildinfo"
  assert (
    make_config(incremental=True, outDir="/project/dist", tsBuildInfoFile="/project/tsconfig.mjs.tsbuildinfo").build_info_path
    == "/project/tsconfig.mjs.tsbuildinfo"
  )
  assert (
    make_config(composite=True, outDir="/project/dist", rootDir="/project/src").build_info_path
    == "/project/tsconfig.tsbuildinfo"
  )


def test_output_file_names_with_out_dir():
  config = make_config(outDir="/project/dist", sourceMap=True, declaration=True, declarationMap=True)
  assert config.get_output_file_names("/project/src/lib/util.ts") == [
    "/project/dist/lib/util.js",
    "/project/dist/lib/util.js.map",
    "/project/dist/lib/util.d.ts",
    "/project/dist/lib/util.d.ts.map",
  ]


def test_output_file_names_declaration_dir_and_module_extensions():
  config = make_config(outDir="/project/dist", declaration=True, declarationDir="/project/types")
  assert config.get_output_file_names("/project/src/index.mts") == [
    "/project/dist/index.mjs",
    "/project/types/index.d.mts",
  ]


def test_output_file_names_in_place_and_skips():
  config = make_config()
  assert config.get_output_file_names("/project/src/index.ts") == ["/project/src/index.js"]
  assert config.get_output_file_names("/project/src/types.d.ts") == []
  assert config.get_output_file_names("/project/src/data.json") == []
  assert make_config(outFile="/project/out.js").get_output_file_names("/project/src/index.ts") == []
  assert make_config(emitDeclarationOnly=True, declaration=True).get_output_file_names("/project/src/index.ts") == [
    "/project/src/index.d.ts"
  ]


def test_source_path_for():
  config = make_config(outDir="/project/dist", declarationDir="/project/types")
  assert config.source_path_for("/project/dist/lib/util.js") == "/project/src/lib/util.js"
  assert config.source_path_for("/project/types/lib/util.d.ts") == "/project/src/lib/util.d.ts"
  assert config.source_path_for("/elsewhere/a.js") == "/elsewhere/a.js"


class NullCompiler(HostCompiler):
  def parse_config(self, config_path, overrides=None):
    return None

  def emit(self, config, system, transformers, dry=False, transpile_only=False):
    raise NotImplementedError


def test_clean_deletes_every_output():
  fs = MemoryFileSystem(
    {
      "/project/dist/index.js": "",
      "/project/dist/index.d.ts": "",
      "/project/dist/lib/util.js": "",
      "/project/dist/tsconfig.tsbuildinfo": "",
      "/project/dist/unrelated.txt": "",
    }
  )
  config = make_config(outDir="/project/dist", declaration=True, incremental=True)

  targets = NullCompiler().clean(config, fs)

  assert "/project/dist/tsconfig.tsbuildinfo" in targets
  assert fs.listing() == ["/project/dist/unrelated.txt"]
