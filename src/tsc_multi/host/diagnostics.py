"""
Host Compiler Diagnostics.

Parses the plain-text output of ``tsc --pretty false --listEmittedFiles``
into :class:`Diagnostic` models and the list of emitted files. Lines that
are neither (e.g. indented continuation lines of a multi-line message) are
attached to the preceding diagnostic.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional

from pydantic import BaseModel, Field

from tsc_multi.enums import DiagnosticCategory

EMITTED_FILE_PREFIX = "TSFILE: "

FILE_DIAGNOSTIC_PATTERN = re.compile(
  r"^(?P<file>.+?)\((?P<line>\d+),(?P<column>\d+)\): (?P<category>error|warning|message) TS(?P<code>\d+): (?P<message>.*)$"
)
GLOBAL_DIAGNOSTIC_PATTERN = re.compile(r"^(?P<category>error|warning|message) TS(?P<code>\d+): (?P<message>.*)$")


class Diagnostic(BaseModel):
  """
  A single compiler diagnostic.
  """

  category: DiagnosticCategory = Field(DiagnosticCategory.ERROR, description="Severity.")
  code: Optional[int] = Field(None, description="Host compiler diagnostic code (TSxxxx).")
  message: str = Field(..., description="Message text, possibly multi-line.")
  file: Optional[str] = Field(None, description="File the diagnostic points at.")
  line: Optional[int] = Field(None, description="1-based line.")
  column: Optional[int] = Field(None, description="1-based column.")

  @property
  def is_error(self) -> bool:
    return self.category is DiagnosticCategory.ERROR

  def location(self) -> str:
    """
    Formats ``file(line,col)`` the way the host compiler does.

    Returns:
        str: Location prefix, empty when the diagnostic is global.
    """
    if not self.file:
      return ""
    if self.line is None:
      return self.file
    return f"{self.file}({self.line},{self.column or 1})"

  def format(self) -> str:
    code = f" TS{self.code}" if self.code is not None else ""
    head = f"{self.category.value}{code}: {self.message}"
    location = self.location()
    return f"{location}: {head}" if location else head


def error_diagnostic(message: str, file: Optional[str] = None) -> Diagnostic:
  """Builds an error diagnostic raised by tsc-multi itself."""
  return Diagnostic(category=DiagnosticCategory.ERROR, message=message, file=file)


@dataclass
class CompilerOutput:
  """
  Parsed host compiler output.

  Attributes:
      diagnostics (List[Diagnostic]): Diagnostics in output order.
      emitted_files (List[str]): Paths listed by ``--listEmittedFiles``.
  """

  diagnostics: List[Diagnostic] = field(default_factory=list)
  emitted_files: List[str] = field(default_factory=list)


def parse_compiler_output(text: str) -> CompilerOutput:
  """
  Splits raw compiler output into diagnostics and emitted files.

  Args:
      text (str): Combined stdout/stderr of the host compiler.

  Returns:
      CompilerOutput: Parsed result.
  """
  output = CompilerOutput()
  last: Optional[Diagnostic] = None

  for raw_line in text.splitlines():
    line = raw_line.rstrip()
    if not line:
      continue

    if line.startswith(EMITTED_FILE_PREFIX):
      output.emitted_files.append(line[len(EMITTED_FILE_PREFIX) :].strip())
      last = None
      continue

    match = FILE_DIAGNOSTIC_PATTERN.match(line)
    if match:
      last = Diagnostic(
        category=DiagnosticCategory(match.group("category")),
        code=int(match.group("code")),
        message=match.group("message"),
        file=match.group("file"),
        line=int(match.group("line")),
        column=int(match.group("column")),
      )
      output.diagnostics.append(last)
      continue

    match = GLOBAL_DIAGNOSTIC_PATTERN.match(line)
    if match:
      last = Diagnostic(
        category=DiagnosticCategory(match.group("category")),
        code=int(match.group("code")),
        message=match.group("message"),
      )
      output.diagnostics.append(last)
      continue

    if last is not None and raw_line[:1].isspace():
      last.message = f"{last.message}\n{line.strip()}"
      continue

    # Unrecognized output: keep it visible as a message.
    last = Diagnostic(category=DiagnosticCategory.MESSAGE, message=line)
    output.diagnostics.append(last)

  return output


def count_errors(diagnostics: List[Diagnostic]) -> int:
  return sum(1 for d in diagnostics if d.is_error)
