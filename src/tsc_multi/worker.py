"""
Build Driver.

A :class:`Worker` builds every project for a single target:

1.  Wraps the file system in a :class:`RewritingFileSystem` carrying the
    target's extension policy.
2.  Registers the specifier rewriters with the host compiler.
3.  Parses each project, and every project it references, with the target's
    compiler option overrides, and orders them so references build first.
    Incremental projects get a build-info file of their own, so targets
    running side by side never share one.
4.  Builds, cleans or transpiles, reporting diagnostics with the target's
    prefix. In watch mode the build is repeated whenever an input changes.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional, Set, Tuple

from pydantic import BaseModel, Field

from tsc_multi.config import DEFAULT_PROJECT, TargetConfig
from tsc_multi.host.base import BUILD_INFO_EXT, HostCompiler, ParsedConfig
from tsc_multi.host.diagnostics import error_diagnostic
from tsc_multi.host.report import Reporter
from tsc_multi.host.tsc import TscCompiler
from tsc_multi.paths import JS_EXT, PathPolicy, declaration_specifier_extension, trim_suffix
from tsc_multi.system.adapter import RewritingFileSystem
from tsc_multi.system.base import FileSystem, LocalFileSystem
from tsc_multi.transformers.base import CustomTransformers, merge_custom_transformers
from tsc_multi.transformers.rewrite_dts_import import RewriteDtsImportTransformer
from tsc_multi.transformers.rewrite_import import RewriteImportTransformer
from tsc_multi.watch import PollingWatcher

logger = logging.getLogger(__name__)


class WorkerOptions(BaseModel):
  """
  Input of one worker; must stay picklable for process pools.

  Attributes:
      target (TargetConfig): Target being built.
      projects (List[str]): Absolute project config paths or directories.
      cwd (Path): Working directory.
      compiler (Optional[str]): ``tsc`` override.
      watch (bool): Rebuild on input changes until interrupted.
      report_prefix (Optional[str]): Label prefixed to every diagnostic.
  """

  target: TargetConfig
  projects: List[str] = Field(default_factory=list)
  cwd: Path
  compiler: Optional[str] = None
  verbose: bool = False
  dry: bool = False
  force: bool = False
  clean: bool = False
  transpile_only: bool = False
  watch: bool = False
  report_prefix: Optional[str] = None


class Worker:
  """
  Runs the build of one target.

  Attributes:
      options (WorkerOptions): Worker input.
      system (RewritingFileSystem): File system all outputs go through.
      reporter (Reporter): Diagnostic sink.
      compiler (HostCompiler): Host compiler.
  """

  def __init__(
    self,
    options: WorkerOptions,
    system: Optional[FileSystem] = None,
    compiler: Optional[HostCompiler] = None,
    extra_transformers: Optional[CustomTransformers] = None,
  ):
    self.options = options
    self.system = self.create_system(system or LocalFileSystem(options.cwd))
    self.reporter = Reporter(options.cwd, options.report_prefix)
    self.compiler = compiler or TscCompiler.create(
      options.cwd, options.compiler, staging_label=f"tsc-multi-{self.target.output_key}"
    )
    self.compiler.report_diagnostic = self.reporter.report_diagnostic
    self.extra_transformers = extra_transformers or CustomTransformers()
    self._built: List[ParsedConfig] = []

  @property
  def target(self) -> TargetConfig:
    return self.options.target

  def run(self) -> int:
    """
    Executes the mode selected by the options.

    Returns:
        int: 0 on success, 1 if any error was reported.
    """
    if self.options.transpile_only:
      return self.transpile()
    if self.options.clean:
      return self.clean()
    if self.options.watch:
      return self.watch()
    return self.build()

  def create_system(self, base: FileSystem) -> RewritingFileSystem:
    policy = PathPolicy(extname=self.target.extname, dts_extname=self.target.dts_extname)
    return RewritingFileSystem(base, policy)

  def create_transformers(self, include_declarations: bool = True) -> CustomTransformers:
    """
    Builds the transformer registration for this target.

    The declaration rewriter is only installed when ``dts_extname`` is set;
    otherwise declaration files keep their specifiers.

    Args:
        include_declarations (bool): False for transpile-only runs.

    Returns:
        CustomTransformers: Extra transformers followed by the rewriters.
    """
    own = CustomTransformers(after=[RewriteImportTransformer(self.target.extname or JS_EXT, self.system)])
    if include_declarations and self.target.dts_extname is not None:
      dts_specifier_ext = declaration_specifier_extension(self.target.dts_extname, self.target.extname)
      own.after_declarations.append(RewriteDtsImportTransformer(dts_specifier_ext, self.system))
    return merge_custom_transformers(self.extra_transformers, own)

  def resolve_project(self, project: str) -> str:
    """Maps a project directory to the ``tsconfig.json`` inside it."""
    if self.system.directory_exists(project):
      return os.path.normpath(os.path.join(project, DEFAULT_PROJECT))
    return os.path.normpath(project)

  def get_parsed_command_line(self, project: str) -> Optional[ParsedConfig]:
    """
    Parses a project with the target's overrides.

    When the target has an ``extname``, the project is incremental and no
    ``tsBuildInfoFile`` is configured, build info goes to
    ``<config path without extension><extname>.tsbuildinfo``.

    Args:
        project (str): Project config path or directory.

    Returns:
        Optional[ParsedConfig]: The config, or None if it could not be read.
    """
    path = self.resolve_project(project)
    config = self.compiler.parse_config(path, self.target.compiler_options())
    if config is None:
      return None

    if self.target.extname and not config.options.get("tsBuildInfoFile") and config.is_incremental:
      base_path = trim_suffix(path, os.path.splitext(path)[1])
      config.options["tsBuildInfoFile"] = f"{base_path}{self.target.extname}{BUILD_INFO_EXT}"
      logger.debug("Build info: %s", config.options["tsBuildInfoFile"])

    return config

  def get_build_order(self) -> Tuple[List[ParsedConfig], int]:
    """
    Parses the configured projects and everything they reference.

    Referenced projects come before the projects referencing them, and each
    project appears once. Unreadable configs and reference cycles are
    reported.

    Returns:
        Tuple[List[ParsedConfig], int]: Projects in build order, and the
        number of errors reported.
    """
    order: List[ParsedConfig] = []
    done: Set[str] = set()
    in_progress: List[str] = []
    error_count = 0

    def visit(project: str) -> None:
      nonlocal error_count
      path = self.resolve_project(project)
      if path in done:
        return
      if path in in_progress:
        cycle = in_progress[in_progress.index(path) :] + [path]
        message = "Project references may not form a circular graph. Cycle detected: " + " -> ".join(
          self._relative(p) for p in cycle
        )
        self.reporter.report_diagnostic(error_diagnostic(message, file=path))
        error_count += 1
        return

      config = self.get_parsed_command_line(path)
      if config is None:
        done.add(path)
        error_count += 1
        return

      in_progress.append(path)
      for reference in config.references:
        visit(reference)
      in_progress.pop()
      done.add(path)
      order.append(config)

    for project in self.options.projects:
      visit(project)
    return order, error_count

  def _relative(self, path: str) -> str:
    return os.path.relpath(path, self.options.cwd)

  def build(self) -> int:
    transformers = self.create_transformers()
    configs, error_count = self.get_build_order()
    failed: Set[str] = set()

    for config in configs:
      name = self._relative(config.config_path)
      broken = [ref for ref in config.references if self.resolve_project(ref) in failed]
      if broken:
        failed.add(config.config_path)
        self.reporter.report_status(
          f"Skipping build of project '{name}' because its dependency '{self._relative(broken[0])}' has errors"
        )
        continue

      if self.options.verbose:
        self.reporter.report_status(f"Building project '{name}'...")

      build_info = config.build_info_path
      if self.options.force and build_info and self.system.file_exists(build_info):
        if self.options.dry:
          logger.info("Would delete %s", build_info)
        else:
          self.system.delete_file(build_info)

      result = self.compiler.emit(config, self.system, transformers, dry=self.options.dry)
      self.reporter.report_diagnostics(result.diagnostics)
      error_count += result.error_count
      if result.error_count:
        failed.add(config.config_path)
      elif result.emit_skipped and self.options.verbose:
        self.reporter.report_status(f"Project '{name}' is up to date")

    self._built = configs
    self.reporter.report_error_summary(error_count)
    return 1 if error_count else 0

  def watched_paths(self) -> List[str]:
    """Config files, inputs and input directories of the last build."""
    paths: Set[str] = set()
    for config in self._built:
      paths.add(config.config_path)
      for file_name in config.file_names:
        paths.add(file_name)
        paths.add(os.path.dirname(file_name))
    return sorted(paths)

  def watch(self, watcher: Optional[PollingWatcher] = None, max_polls: Optional[int] = None) -> int:
    """
    Builds, then rebuilds whenever a watched path changes.

    Args:
        watcher (Optional[PollingWatcher]): Change source, polling every
            second by default.
        max_polls (Optional[int]): Stop after this many polls; unbounded when None.

    Returns:
        int: Exit code of the last build.
    """
    code = self.build()
    self.reporter.report_status("Watching for file changes.")

    def rebuild(changed: List[str]) -> None:
      nonlocal code
      self.reporter.report_status("File change detected. Starting incremental compilation...")
      code = self.build()
      self.reporter.report_status("Watching for file changes.")

    try:
      (watcher or PollingWatcher()).watch(self.watched_paths, rebuild, max_polls=max_polls)
    except KeyboardInterrupt:
      logger.debug("Watch stopped")
    return code

  def clean(self) -> int:
    configs, error_count = self.get_build_order()
    for config in configs:
      if self.options.dry:
        for input_path in config.file_names:
          for output in config.get_output_file_names(input_path):
            logger.info("Would delete %s", self.system.rewrite_path(output))
        continue

      deleted = self.compiler.clean(config, self.system)
      if self.options.verbose:
        self.reporter.report_status(f"Cleaned {len(deleted)} file(s) of '{self._relative(config.config_path)}'")

    return 1 if error_count else 0

  def transpile(self) -> int:
    """
    Emits scripts without type checking or declarations.

    Only the script rewriter runs; declaration output is disabled. Only the
    listed projects are transpiled, not their references.
    """
    transformers = self.create_transformers(include_declarations=False)
    error_count = 0

    for project in self.options.projects:
      config = self.get_parsed_command_line(project)
      if config is None:
        error_count += 1
        continue
      result = self.compiler.emit(
        config,
        self.system,
        transformers,
        dry=self.options.dry,
        transpile_only=True,
      )
      self.reporter.report_diagnostics(result.diagnostics)
      error_count += result.error_count

    self.reporter.report_error_summary(error_count)
    return 1 if error_count else 0
