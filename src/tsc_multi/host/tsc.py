"""
``tsc`` Subprocess Host.

Drives the TypeScript compiler as a child process:

1.  ``tsc --showConfig -p <config> <overrides>`` resolves a project
    (``extends`` chains, ``include`` globs) into options, input files and
    project references.
2.  ``tsc -p <config> <overrides> --listEmittedFiles --pretty false`` compiles
    it. Output directories are redirected into staging directories created as
    siblings of the real ones (same depth, so relative ``sources`` entries
    in source maps stay valid). Their names are stable per target, so
    concurrent targets never share one and the output options recorded in
    incremental build info do not change between runs.
3.  Every emitted script/declaration is parsed, passed through the
    registered transformers and written through the caller's file system,
    which applies the target's renames.

Projects without ``outDir`` are staged through a mirror of their root
directory and written back next to their sources.
"""

import json
import logging
import os
import shutil
import subprocess
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from tsc_multi.enums import OutputRole
from tsc_multi.errors import ConfigError, SourceMapError, TscMultiError
from tsc_multi.host.base import PATH_OPTIONS, EmitResult, HostCompiler, ParsedConfig
from tsc_multi.host.diagnostics import error_diagnostic, parse_compiler_output
from tsc_multi.paths import classify
from tsc_multi.syntax.tree import Bundle, SourceFile, SyntaxLanguage
from tsc_multi.system.adapter import RewritingFileSystem
from tsc_multi.system.base import FileSystem
from tsc_multi.transformers.base import CustomTransformers, TransformationContext, apply_transformers

logger = logging.getLogger(__name__)

TRANSPILE_ONLY_FLAGS = (
  "--noCheck",
  "--declaration",
  "false",
  "--declarationMap",
  "false",
  "--emitDeclarationOnly",
  "false",
  "--composite",
  "false",
  "--incremental",
  "false",
)

DEFAULT_STAGING_LABEL = "tsc-multi"


def override_flags(overrides: Optional[Dict[str, Any]]) -> List[str]:
  """
  Turns compiler option overrides into command line flags.

  Args:
      overrides (Optional[Dict[str, Any]]): Option name to value.

  Returns:
      List[str]: Flags such as ``["--module", "esnext", "--sourceMap", "true"]``.

  Raises:
      ConfigError: For values that have no command line form (objects).
  """
  flags: List[str] = []
  for key, value in (overrides or {}).items():
    if value is None:
      continue
    if isinstance(value, bool):
      flags.extend([f"--{key}", "true" if value else "false"])
    elif isinstance(value, (list, tuple)):
      flags.extend([f"--{key}", ",".join(str(v) for v in value)])
    elif isinstance(value, (str, int, float)):
      flags.extend([f"--{key}", str(value)])
    else:
      raise ConfigError(f"Compiler option '{key}' cannot be passed on the command line")
  return flags


def find_compiler(cwd: Path, compiler: Optional[str] = None) -> List[str]:
  """
  Locates the ``tsc`` executable.

  Args:
      cwd (Path): Project directory; its ``node_modules/.bin`` is searched first.
      compiler (Optional[str]): Explicit executable, or a ``.js`` entry point
          that is run with ``node``.

  Returns:
      List[str]: Command prefix.

  Raises:
      ConfigError: If no compiler can be found.
  """
  if compiler:
    path = compiler if os.path.isabs(compiler) else str(cwd / compiler)
    if compiler.endswith((".js", ".cjs", ".mjs")):
      return ["node", path]
    if os.path.exists(path):
      return [path]
    found = shutil.which(compiler)
    if found:
      return [found]
    raise ConfigError(f"Compiler not found: {compiler}")

  local = cwd / "node_modules" / ".bin" / "tsc"
  if local.exists():
    return [str(local)]
  found = shutil.which("tsc")
  if found:
    return [found]
  raise ConfigError("Cannot find 'tsc'. Install typescript or pass --compiler.")


class StagingArea:
  """
  Redirects output directories into sibling staging directories.

  Attributes:
      label (str): Suffix distinguishing this target's staging directories.
  """

  def __init__(self, label: str):
    self.label = label
    self._mappings: List[Tuple[str, str]] = []

  def stage(self, real_dir: str) -> str:
    """
    Args:
        real_dir (str): Directory outputs belong in.

    Returns:
        str: Staging directory next to it.
    """
    real_dir = os.path.normpath(real_dir)
    staged = os.path.join(os.path.dirname(real_dir), f".{os.path.basename(real_dir)}.{self.label}.staging")
    self._mappings.append((staged, real_dir))
    return staged

  def to_real(self, path: str) -> str:
    """Maps a staged path to its final location; other paths are returned as-is."""
    normalized = os.path.normpath(path)
    # Longest staging prefix first, declaration dirs can nest in outDir.
    for staged, real in sorted(self._mappings, key=lambda m: len(m[0]), reverse=True):
      if normalized == staged or normalized.startswith(staged + os.sep):
        return os.path.join(real, os.path.relpath(normalized, staged))
    return path

  def cleanup(self) -> None:
    """Removes the staging directories, including leftovers of an interrupted run."""
    for staged, _ in self._mappings:
      if os.path.isdir(staged):
        shutil.rmtree(staged)


class TscCompiler(HostCompiler):
  """
  Host compiler backed by the ``tsc`` executable.

  Attributes:
      command (List[str]): Command prefix used to run ``tsc``.
      cwd (Path): Working directory of the child process.
      staging_label (str): Names this target's staging directories.
  """

  def __init__(self, command: Sequence[str], cwd: Path, staging_label: str = DEFAULT_STAGING_LABEL):
    self.command = list(command)
    self.cwd = Path(cwd)
    self.staging_label = staging_label

  @classmethod
  def create(
    cls, cwd: Path, compiler: Optional[str] = None, staging_label: str = DEFAULT_STAGING_LABEL
  ) -> "TscCompiler":
    return cls(find_compiler(Path(cwd), compiler), Path(cwd), staging_label)

  def _run(self, args: Sequence[str]) -> subprocess.CompletedProcess:
    cmd = [*self.command, *args]
    logger.debug("Running: %s", " ".join(cmd))
    return subprocess.run(cmd, cwd=str(self.cwd), capture_output=True, text=True, check=False)

  def parse_config(self, config_path: str, overrides: Optional[Dict[str, Any]] = None) -> Optional[ParsedConfig]:
    if not os.path.isfile(config_path):
      self.report(error_diagnostic(f"Cannot find a tsconfig.json file at the specified path: '{config_path}'."))
      return None

    proc = self._run(["--showConfig", "-p", config_path, *override_flags(overrides)])
    if proc.returncode != 0:
      diagnostics = parse_compiler_output(proc.stdout + proc.stderr).diagnostics
      if not diagnostics:
        diagnostics = [error_diagnostic(f"Failed to read '{config_path}'", file=config_path)]
      for diagnostic in diagnostics:
        self.report(diagnostic)
      return None

    try:
      data = json.loads(proc.stdout)
    except json.JSONDecodeError as e:
      self.report(error_diagnostic(f"Unreadable --showConfig output: {e}", file=config_path))
      return None

    config_dir = os.path.dirname(config_path)
    options = dict(data.get("compilerOptions") or {})
    for key in PATH_OPTIONS:
      if isinstance(options.get(key), str):
        options[key] = os.path.normpath(os.path.join(config_dir, options[key]))

    file_names = [os.path.normpath(os.path.join(config_dir, f)) for f in data.get("files") or []]
    references = [
      os.path.normpath(os.path.join(config_dir, ref["path"]))
      for ref in data.get("references") or []
      if isinstance(ref, dict) and ref.get("path")
    ]

    return ParsedConfig(
      config_path=config_path,
      options=options,
      file_names=file_names,
      overrides=dict(overrides or {}),
      references=references,
    )

  def _stage_outputs(
    self, config: ParsedConfig, staging: StagingArea, dry: bool, transpile_only: bool
  ) -> List[str]:
    args: List[str] = []
    if config.out_file:
      staged_dir = staging.stage(os.path.dirname(config.out_file))
      args.extend(["--outFile", os.path.join(staged_dir, os.path.basename(config.out_file))])
    elif config.out_dir:
      args.extend(["--outDir", staging.stage(config.out_dir)])
      if config.declaration_dir:
        args.extend(["--declarationDir", staging.stage(config.declaration_dir)])
    else:
      # In-place projects: stage a mirror of the root directory.
      args.extend(["--outDir", staging.stage(config.root_dir), "--rootDir", config.root_dir])
      if config.declaration_dir:
        args.extend(["--declarationDir", staging.stage(config.declaration_dir)])

    build_info = None if transpile_only else config.build_info_path
    if build_info:
      if dry:
        staged_dir = staging.stage(os.path.dirname(build_info))
        build_info = os.path.join(staged_dir, os.path.basename(build_info))
      args.extend(["--tsBuildInfoFile", build_info])
    return args

  def emit(
    self,
    config: ParsedConfig,
    system: FileSystem,
    transformers: CustomTransformers,
    dry: bool = False,
    transpile_only: bool = False,
  ) -> EmitResult:
    staging = StagingArea(self.staging_label)
    args = ["-p", config.config_path, *override_flags(config.overrides)]
    args.extend(self._stage_outputs(config, staging, dry, transpile_only))
    staging.cleanup()
    if transpile_only:
      args.extend(TRANSPILE_ONLY_FLAGS)
    args.extend(["--listEmittedFiles", "--pretty", "false"])

    result = EmitResult()
    context = TransformationContext(compiler_options=dict(config.options))
    try:
      proc = self._run(args)
      output = parse_compiler_output(proc.stdout + proc.stderr)
      result.diagnostics.extend(output.diagnostics)
      if proc.returncode != 0 and not output.diagnostics:
        result.diagnostics.append(error_diagnostic(f"tsc exited with status {proc.returncode}"))
      result.emit_skipped = not output.emitted_files

      for emitted in output.emitted_files:
        self._write_output(emitted, config, system, transformers, context, staging, dry, result)
    finally:
      staging.cleanup()

    return result

  def _write_output(
    self,
    emitted: str,
    config: ParsedConfig,
    system: FileSystem,
    transformers: CustomTransformers,
    context: TransformationContext,
    staging: StagingArea,
    dry: bool,
    result: EmitResult,
  ) -> None:
    emitted = os.path.normpath(emitted if os.path.isabs(emitted) else os.path.join(self.cwd, emitted))
    real = staging.to_real(emitted)
    if real == config.build_info_path or emitted.endswith(".tsbuildinfo"):
      return

    text = Path(emitted).read_text(encoding="utf-8")
    role = classify(real)
    hooks = []
    if role is OutputRole.SCRIPT:
      hooks = transformers.after
    elif role is OutputRole.DECLARATION:
      hooks = transformers.after_declarations

    if hooks:
      try:
        root = self._tree_root(real, text, config, role)
        text = apply_transformers(hooks, root, context).text
      except TscMultiError as e:
        result.diagnostics.append(error_diagnostic(str(e), file=real))
        return

    target = system.rewrite_path(real) if isinstance(system, RewritingFileSystem) else real
    if dry:
      logger.info("Would write %s", target)
      result.written_files.append(target)
      return
    try:
      system.write_file(real, text)
    except SourceMapError as e:
      result.diagnostics.append(error_diagnostic(str(e), file=real))
      return
    result.written_files.append(target)

  def _tree_root(
    self, real: str, text: str, config: ParsedConfig, role: Optional[OutputRole]
  ) -> Union[SourceFile, Bundle]:
    language = SyntaxLanguage.TYPESCRIPT if role is OutputRole.DECLARATION else SyntaxLanguage.JAVASCRIPT
    if config.out_file:
      return Bundle(file_name=real, text=text, output_path=real)
    return SourceFile.from_text(config.source_path_for(real), text, language=language, output_path=real)
