"""
Enumerations for tsc-multi.

This module defines the classification of emitted artifacts and the
severity levels used when reporting host compiler diagnostics.
"""

from enum import Enum


class OutputRole(str, Enum):
  """
  Role of an emitted artifact, derived purely from its original suffix.

  Used to select which extension rule of a target applies to a path.
  """

  SCRIPT = "script"  # .js
  SCRIPT_MAP = "script_map"  # .js.map
  DECLARATION = "declaration"  # .d.ts
  DECLARATION_MAP = "declaration_map"  # .d.ts.map

  @property
  def is_declaration(self) -> bool:
    """True for declaration files and their source maps."""
    return self in (OutputRole.DECLARATION, OutputRole.DECLARATION_MAP)

  @property
  def is_map(self) -> bool:
    """True for source map payloads."""
    return self in (OutputRole.SCRIPT_MAP, OutputRole.DECLARATION_MAP)


class DiagnosticCategory(str, Enum):
  """
  Severity of a diagnostic reported by the host compiler.
  """

  ERROR = "error"
  WARNING = "warning"
  MESSAGE = "message"
