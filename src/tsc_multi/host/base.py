"""
Host Compiler Boundary.

The host compiler parses, type-checks and generates code; tsc-multi only
hands it a file system and a set of transformers and receives diagnostics.
This module defines that contract:

* :class:`ParsedConfig` - a project configuration with resolved options and
  input files, plus the output layout derived from them.
* :class:`EmitResult` - what one emit produced.
* :class:`HostCompiler` - ``parse_config`` / ``emit`` / ``clean``.
"""

import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional

from pydantic import BaseModel, Field

from tsc_multi.host.diagnostics import Diagnostic, count_errors
from tsc_multi.paths import DTS_EXT, MAP_EXT, trim_suffix
from tsc_multi.system.base import FileSystem
from tsc_multi.transformers.base import CustomTransformers

logger = logging.getLogger(__name__)

BUILD_INFO_EXT = ".tsbuildinfo"

# Compiler options holding paths, resolved against the config directory.
PATH_OPTIONS = ("outDir", "rootDir", "declarationDir", "outFile", "tsBuildInfoFile", "baseUrl")

_SCRIPT_OUTPUT_EXTENSIONS = {
  ".ts": ".js",
  ".tsx": ".js",
  ".mts": ".mjs",
  ".cts": ".cjs",
  ".js": ".js",
  ".jsx": ".js",
  ".mjs": ".mjs",
  ".cjs": ".cjs",
}

_DECLARATION_INPUT_SUFFIXES = (".d.ts", ".d.mts", ".d.cts")


def is_incremental_compilation(options: Dict[str, Any]) -> bool:
  return bool(options.get("incremental") or options.get("composite"))


def is_declaration_file(path: str) -> bool:
  return path.endswith(_DECLARATION_INPUT_SUFFIXES)


def _is_within(path: str, directory: str) -> bool:
  try:
    return os.path.commonpath([path, directory]) == directory
  except ValueError:
    return False


class ParsedConfig(BaseModel):
  """
  A resolved project configuration.

  Attributes:
      config_path (str): Absolute path of the config file.
      options (Dict[str, Any]): Compiler options; path options are absolute.
      file_names (List[str]): Absolute input file paths.
      overrides (Dict[str, Any]): Target options applied on top of the file.
      references (List[str]): Absolute paths of referenced projects, config
          files or directories holding a ``tsconfig.json``.
  """

  config_path: str
  options: Dict[str, Any] = Field(default_factory=dict)
  file_names: List[str] = Field(default_factory=list)
  overrides: Dict[str, Any] = Field(default_factory=dict)
  references: List[str] = Field(default_factory=list)

  @property
  def config_dir(self) -> str:
    return os.path.dirname(self.config_path)

  @property
  def out_dir(self) -> Optional[str]:
    return self.options.get("outDir")

  @property
  def declaration_dir(self) -> Optional[str]:
    return self.options.get("declarationDir")

  @property
  def out_file(self) -> Optional[str]:
    return self.options.get("outFile")

  @property
  def is_incremental(self) -> bool:
    return is_incremental_compilation(self.options)

  @property
  def root_dir(self) -> str:
    """
    Directory the output layout mirrors: ``rootDir`` when set, the config
    directory for composite projects, otherwise the common directory of all
    non-declaration inputs.
    """
    explicit = self.options.get("rootDir")
    if explicit:
      return explicit
    if self.options.get("composite"):
      return self.config_dir
    sources = [os.path.dirname(f) for f in self.file_names if not is_declaration_file(f)]
    if not sources:
      return self.config_dir
    return os.path.commonpath(sources)

  @property
  def build_info_path(self) -> Optional[str]:
    """
    Location of the incremental metadata file, None for non-incremental
    projects.
    """
    if not self.is_incremental:
      return None
    explicit = self.options.get("tsBuildInfoFile")
    if explicit:
      return explicit
    if self.out_file:
      return os.path.splitext(self.out_file)[0] + BUILD_INFO_EXT

    config_base = os.path.splitext(self.config_path)[0]
    if not self.out_dir:
      return config_base + BUILD_INFO_EXT
    if self.options.get("rootDir"):
      return os.path.normpath(os.path.join(self.out_dir, os.path.relpath(config_base, self.root_dir))) + BUILD_INFO_EXT
    return os.path.join(self.out_dir, os.path.basename(config_base)) + BUILD_INFO_EXT

  def source_path_for(self, output_path: str) -> str:
    """
    Maps an emitted path back into the source tree.

    Only the directory of the result is meaningful; relative specifiers in
    the output are resolved against it.

    Args:
        output_path (str): Absolute emitted path.

    Returns:
        str: Path inside the source tree, or ``output_path`` for in-place output.
    """
    for base in (self.declaration_dir, self.out_dir):
      if base and _is_within(output_path, base):
        return os.path.join(self.root_dir, os.path.relpath(output_path, base))
    return output_path

  def get_output_file_names(self, input_path: str) -> List[str]:
    """
    Lists the artifacts the host compiler emits for one input.

    Args:
        input_path (str): Absolute input file path.

    Returns:
        List[str]: Script, script map, declaration and declaration map paths
        as enabled by the options. Empty for declaration inputs and bundles.
    """
    if is_declaration_file(input_path) or self.out_file:
      return []

    stem, ext = os.path.splitext(input_path)
    script_ext = _SCRIPT_OUTPUT_EXTENSIONS.get(ext)
    if script_ext is None:
      return []

    relative_stem = os.path.relpath(stem, self.root_dir)
    script_base = os.path.join(self.out_dir, relative_stem) if self.out_dir else stem
    outputs: List[str] = []

    if not self.options.get("emitDeclarationOnly"):
      script = script_base + script_ext
      outputs.append(script)
      if self.options.get("sourceMap"):
        outputs.append(script + MAP_EXT)

    if self.options.get("declaration") or self.options.get("composite"):
      declaration_root = self.declaration_dir or self.out_dir
      declaration_base = os.path.join(declaration_root, relative_stem) if declaration_root else stem
      declaration_ext = DTS_EXT if script_ext == ".js" else ".d" + trim_suffix(script_ext, "js") + "ts"
      declaration = declaration_base + declaration_ext
      outputs.append(declaration)
      if self.options.get("declarationMap"):
        outputs.append(declaration + MAP_EXT)

    return outputs


class EmitResult(BaseModel):
  """
  Outcome of one emit.
  """

  diagnostics: List[Diagnostic] = Field(default_factory=list)
  written_files: List[str] = Field(default_factory=list)
  emit_skipped: bool = False

  @property
  def error_count(self) -> int:
    return count_errors(self.diagnostics)


DiagnosticReporter = Callable[[Diagnostic], None]


class HostCompiler(ABC):
  """
  Contract of the external compiler.

  Attributes:
      report_diagnostic (Optional[DiagnosticReporter]): Channel for
          unrecoverable configuration diagnostics.
  """

  report_diagnostic: Optional[DiagnosticReporter] = None

  def report(self, diagnostic: Diagnostic) -> None:
    if self.report_diagnostic is not None:
      self.report_diagnostic(diagnostic)
    else:
      logger.error(diagnostic.format())

  @abstractmethod
  def parse_config(self, config_path: str, overrides: Optional[Dict[str, Any]] = None) -> Optional[ParsedConfig]:
    """
    Reads and resolves a project configuration.

    Args:
        config_path (str): Absolute config file path.
        overrides (Optional[Dict[str, Any]]): Compiler options taking
            precedence over the file.

    Returns:
        Optional[ParsedConfig]: The configuration, or None after reporting a
        diagnostic when it cannot be read.
    """

  @abstractmethod
  def emit(
    self,
    config: ParsedConfig,
    system: FileSystem,
    transformers: CustomTransformers,
    dry: bool = False,
    transpile_only: bool = False,
  ) -> EmitResult:
    """
    Compiles a project and writes its outputs through ``system``.

    Args:
        config (ParsedConfig): Project to compile.
        system (FileSystem): Destination of every output write.
        transformers (CustomTransformers): Post-emit hooks.
        dry (bool): Report writes without performing them.
        transpile_only (bool): Skip type checking and declaration output.

    Returns:
        EmitResult: Diagnostics and written files.
    """

  def clean(self, config: ParsedConfig, system: FileSystem) -> List[str]:
    """
    Deletes every output of ``config`` through ``system``.

    Args:
        config (ParsedConfig): Project to clean.
        system (FileSystem): File system deletes are routed through.

    Returns:
        List[str]: Paths handed to ``delete_file``.
    """
    targets: List[str] = []
    for input_path in config.file_names:
      targets.extend(config.get_output_file_names(input_path))
    if config.build_info_path:
      targets.append(config.build_info_path)

    for path in targets:
      system.delete_file(path)
    return targets
