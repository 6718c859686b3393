"""
Central Logging and Console Utilities.

All output goes through the standard ``logging`` library, rendered by
``rich``. The module keeps a proxy around the active Rich console so the
destination (stdout or a recording buffer in tests) can be swapped at runtime
via ``set_console`` while modules hold on to the same ``console`` object.

Attributes:
    console (_ConsoleProxy): A global, stable reference to the active Rich Console.
"""

import logging
from typing import Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

# Between INFO and WARNING.
SUCCESS_LEVEL_NUM = 25
logging.addLevelName(SUCCESS_LEVEL_NUM, "SUCCESS")

THEME = Theme(
  {
    "logging.level.success": "green",
    "info": "dim cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "green",
    "path": "bold blue",
    "prefix": "bold magenta",
  }
)


class _ConsoleProxy:
  """
  A Proxy wrapper around `rich.console.Console`.

  All printing is forwarded to the backend console. When the backend changes,
  the root logger's Rich handler is rebuilt so ``logging`` follows it.

  Attributes:
      _backend (Console): The active Rich Console instance.
  """

  def __init__(self) -> None:
    self._backend: Console = Console(theme=THEME)
    self._level = logging.INFO
    self._configure_logging()

  def set_backend(self, new_console: Console) -> None:
    """
    Injects a new Console backend and updates logging handlers.

    Args:
        new_console (Console): The new Rich Console instance to use.
    """
    self._backend = new_console
    self._configure_logging()

  def reset(self) -> None:
    """Resets the proxy to a fresh standard output console at INFO level."""
    self._backend = Console(theme=THEME)
    self._level = logging.INFO
    self._configure_logging()

  def set_level(self, level: int) -> None:
    self._level = level
    logging.getLogger().setLevel(level)

  @property
  def backend(self) -> Console:
    return self._backend

  def _configure_logging(self) -> None:
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
      if isinstance(handler, RichHandler):
        root_logger.removeHandler(handler)

    rich_handler = RichHandler(
      console=self._backend,
      show_time=False,
      omit_repeated_times=False,
      show_path=False,
      markup=False,
      rich_tracebacks=True,
    )

    root_logger.setLevel(self._level)
    root_logger.addHandler(rich_handler)

  def print(self, *args: Any, **kwargs: Any) -> None:
    self._backend.print(*args, **kwargs)

  def __getattr__(self, name: str) -> Any:
    """
    Fallback to forward any other attributes/methods to the backend.

    Args:
        name (str): Attribute name.

    Returns:
        Any: The attribute from the backend console.
    """
    return getattr(self._backend, name)


console = _ConsoleProxy()


def set_console(new_console: Console) -> None:
  """
  Routes the ``console`` proxy and ``logging`` to ``new_console``.

  Args:
      new_console (Console): The configured Rich console to use globally.
  """
  console.set_backend(new_console)


def reset_console() -> None:
  console.reset()


def get_console() -> Console:
  return console.backend


def set_verbose(verbose: bool) -> None:
  """
  Switches the root logger between DEBUG (verbose) and INFO.

  Args:
      verbose (bool): Enable debug output.
  """
  console.set_level(logging.DEBUG if verbose else logging.INFO)


def log_info(msg: str) -> None:
  logging.info(msg)


def log_success(msg: str) -> None:
  logging.log(SUCCESS_LEVEL_NUM, msg)


def log_warning(msg: str) -> None:
  logging.warning(msg)


def log_error(msg: str) -> None:
  logging.error(msg)
