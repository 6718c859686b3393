"""
Error taxonomy.

Configuration problems surface before any build step runs. Tree-shape
problems are fatal for the file being transformed but not for the build.
Malformed source maps abort the write that carried them. Plain ``OSError``
from the file system is never wrapped.
"""


class TscMultiError(Exception):
  """Base class for all errors raised by tsc-multi."""


class ConfigError(TscMultiError, ValueError):
  """
  Missing or invalid target/build configuration.
  """


class UnsupportedTreeError(TscMultiError):
  """
  Raised when a transformer receives a syntax tree root it cannot handle,
  such as a multi-file bundle.
  """

  def __init__(self, message: str, file_name: str = ""):
    super().__init__(message)
    self.file_name = file_name


class SourceMapError(TscMultiError, ValueError):
  """
  Raised when a source map written through the adapter is not valid JSON.
  """

  def __init__(self, path: str, reason: str):
    super().__init__(f"Invalid source map '{path}': {reason}")
    self.path = path
