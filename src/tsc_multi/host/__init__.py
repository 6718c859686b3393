"""
Host compiler boundary and the ``tsc`` subprocess implementation.
"""

from tsc_multi.host.base import EmitResult, HostCompiler, ParsedConfig, is_incremental_compilation
from tsc_multi.host.diagnostics import Diagnostic, error_diagnostic, parse_compiler_output
from tsc_multi.host.report import Reporter
from tsc_multi.host.tsc import TscCompiler, override_flags

__all__ = [
  "Diagnostic",
  "EmitResult",
  "HostCompiler",
  "ParsedConfig",
  "Reporter",
  "TscCompiler",
  "error_diagnostic",
  "is_incremental_compilation",
  "override_flags",
  "parse_compiler_output",
]
