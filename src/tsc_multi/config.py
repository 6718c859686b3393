"""
Build Configuration.

Targets and build flags are read from a JSON file (``tsc-multi.json`` in the
working directory unless given explicitly) and merged with command line
values, which take precedence::

    {
      "targets": [
        {"extname": ".cjs", "module": "commonjs"},
        {"extname": ".mjs", "dtsExtName": ".d.mts", "module": "esnext"}
      ],
      "projects": ["packages/*/tsconfig.json"]
    }

Every target key besides ``extname``/``dtsExtName`` is a compiler option
override for that target.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from tsc_multi.errors import ConfigError

DEFAULT_CONFIG_FILE = "tsc-multi.json"
DEFAULT_PROJECT = "tsconfig.json"


class TargetConfig(BaseModel):
  """
  One output flavour of the build.

  Attributes:
      extname (Optional[str]): Script extension, e.g. ``.mjs``. Unset keeps ``.js``.
      dts_extname (Optional[str]): Declaration extension, e.g. ``.d.mts``.
          Unset keeps ``.d.ts`` and leaves declaration specifiers alone.
  """

  model_config = ConfigDict(extra="allow", frozen=True, populate_by_name=True)

  extname: Optional[str] = Field(None, description="Extension of emitted scripts.")
  dts_extname: Optional[str] = Field(None, alias="dtsExtName", description="Extension of emitted declarations.")

  @field_validator("extname", "dts_extname")
  @classmethod
  def validate_extension(cls, v: Optional[str]) -> Optional[str]:
    """
    Ensures extensions carry their leading dot.

    Raises:
        ValueError: If the value does not start with ``.``.
    """
    if v is not None and not v.startswith("."):
      raise ValueError(f"Extension must start with '.': {v!r}")
    return v

  def compiler_options(self) -> Dict[str, Any]:
    """Compiler option overrides carried by this target."""
    return dict(self.model_extra or {})

  @property
  def label(self) -> str:
    """Short name used to prefix this target's output, e.g. ``mjs``."""
    if self.extname:
      return self.extname.lstrip(".")
    if self.dts_extname:
      return self.dts_extname.lstrip(".")
    return "js"

  @property
  def output_key(self) -> str:
    """Identifies the output layout, e.g. ``mjs`` or ``mjs-d.mts``; stable across runs."""
    parts = [(self.extname or ".js").lstrip(".")]
    if self.dts_extname:
      parts.append(self.dts_extname.lstrip("."))
    return "-".join(parts)


class BuildConfig(BaseModel):
  """
  Everything one ``tsc-multi`` invocation needs.
  """

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

  targets: List[TargetConfig] = Field(default_factory=list, description="Output flavours.")
  projects: List[str] = Field(default_factory=lambda: [DEFAULT_PROJECT], description="Project config paths.")
  cwd: Path = Field(default_factory=Path.cwd, description="Directory paths are resolved against.")
  compiler: Optional[str] = Field(None, description="Path of the tsc executable or its .js entry point.")
  verbose: bool = False
  dry: bool = False
  force: bool = False
  clean: bool = False
  transpile_only: bool = False
  watch: bool = False
  max_workers: Optional[int] = Field(None, description="Upper bound on concurrent target processes.")

  @field_validator("max_workers")
  @classmethod
  def validate_max_workers(cls, v: Optional[int]) -> Optional[int]:
    if v is not None and v < 1:
      raise ValueError("maxWorkers must be at least 1")
    return v

  def resolved_projects(self) -> List[str]:
    """Project paths made absolute against ``cwd``."""
    return [str((self.cwd / p).resolve()) for p in self.projects]

  @classmethod
  def load(
    cls,
    config_path: Optional[Path] = None,
    cwd: Optional[Path] = None,
    **overrides: Any,
  ) -> "BuildConfig":
    """
    Loads the config file and applies command line overrides.

    Args:
        config_path (Optional[Path]): Explicit config file; must exist.
        cwd (Optional[Path]): Working directory, defaults to the process cwd.
        **overrides: Field values that take precedence over the file.
            ``None`` values and empty project lists are ignored.

    Returns:
        BuildConfig: The validated configuration.

    Raises:
        ConfigError: If the file is unreadable or invalid, or no target is defined.
    """
    base_dir = Path(cwd or Path.cwd()).resolve()
    data: Dict[str, Any] = {}

    if config_path is not None:
      path = config_path if Path(config_path).is_absolute() else base_dir / config_path
      if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
      data = _read_json(path)
    elif (base_dir / DEFAULT_CONFIG_FILE).is_file():
      data = _read_json(base_dir / DEFAULT_CONFIG_FILE)

    for key, value in overrides.items():
      if value is None or value == []:
        continue
      data.pop(to_camel(key), None)
      data[key] = value
    data["cwd"] = base_dir

    try:
      config = cls.model_validate(data)
    except ValidationError as e:
      raise ConfigError(f"Invalid configuration: {e}") from e

    if not config.targets:
      raise ConfigError("At least one target must be specified")
    return config


def _read_json(path: Path) -> Dict[str, Any]:
  try:
    data = json.loads(path.read_text(encoding="utf-8"))
  except json.JSONDecodeError as e:
    raise ConfigError(f"Failed to parse {path}: {e}") from e
  if not isinstance(data, dict):
    raise ConfigError(f"{path} must contain a JSON object")
  return data
