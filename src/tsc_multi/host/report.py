"""
Diagnostic Reporter.

Prints host compiler diagnostics through the shared Rich console, prefixed
with the target label (e.g. ``[mjs]``) so interleaved output of concurrent
targets stays attributable.
"""

import os
from pathlib import Path
from typing import Iterable, Optional

from rich.text import Text

from tsc_multi.enums import DiagnosticCategory
from tsc_multi.host.diagnostics import Diagnostic
from tsc_multi.utils.console import console

_CATEGORY_STYLES = {
  DiagnosticCategory.ERROR: "error",
  DiagnosticCategory.WARNING: "warning",
  DiagnosticCategory.MESSAGE: "info",
}


class Reporter:
  """
  Formats diagnostics for one target.

  Attributes:
      cwd (Path): Paths are shown relative to this directory.
      prefix (Optional[str]): Target label.
  """

  def __init__(self, cwd: Path, prefix: Optional[str] = None):
    self.cwd = Path(cwd)
    self.prefix = prefix

  def _relative(self, path: str) -> str:
    if not os.path.isabs(path):
      return path
    try:
      return os.path.relpath(path, self.cwd)
    except ValueError:
      return path

  def _head(self) -> Text:
    text = Text()
    if self.prefix:
      text.append(f"[{self.prefix}]", style="prefix")
      text.append(": ")
    return text

  def report_diagnostic(self, diagnostic: Diagnostic) -> None:
    """
    Prints one diagnostic.

    Args:
        diagnostic (Diagnostic): Diagnostic to print.
    """
    line = self._head()
    if diagnostic.file:
      shown = diagnostic.model_copy(update={"file": self._relative(diagnostic.file)})
      line.append(shown.location(), style="path")
      line.append(": ")
    line.append(diagnostic.category.value, style=_CATEGORY_STYLES[diagnostic.category])
    if diagnostic.code is not None:
      line.append(f" TS{diagnostic.code}", style="dim")
    line.append(f": {diagnostic.message}")
    console.print(line)

  def report_diagnostics(self, diagnostics: Iterable[Diagnostic]) -> None:
    for diagnostic in diagnostics:
      self.report_diagnostic(diagnostic)

  def report_status(self, message: str) -> None:
    line = self._head()
    line.append(message, style="info")
    console.print(line)

  def report_error_summary(self, error_count: int) -> None:
    """Prints the trailing ``Found N errors.`` line when there are errors."""
    if error_count <= 0:
      return
    noun = "error" if error_count == 1 else "errors"
    line = self._head()
    line.append(f"Found {error_count} {noun}.", style="error")
    console.print(line)
