"""
Polling File Watcher.

Watch mode re-enters the build whenever a watched path changes. Changes are
found by polling: each round takes a snapshot of size and modification time
for every watched path and compares it with the previous one. Directories
are watched too, so files added to or removed from them are noticed.
"""

import logging
import os
import time
from typing import Callable, Dict, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 1.0

Snapshot = Dict[str, Tuple[int, int]]


def take_snapshot(paths: Iterable[str]) -> Snapshot:
  """
  Records size and modification time of ``paths``; missing paths are left out.
  """
  snapshot: Snapshot = {}
  for path in sorted(set(paths)):
    try:
      stat = os.stat(path)
    except FileNotFoundError:
      continue
    snapshot[path] = (stat.st_size, stat.st_mtime_ns)
  return snapshot


def changed_paths(before: Snapshot, after: Snapshot) -> List[str]:
  """Paths added, removed or modified between two snapshots."""
  return sorted(path for path in set(before) | set(after) if before.get(path) != after.get(path))


class PollingWatcher:
  """
  Calls back on changes of a set of paths.

  Attributes:
      poll_interval (float): Seconds between two snapshots.
  """

  def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL, sleep: Callable[[float], None] = time.sleep):
    self.poll_interval = poll_interval
    self._sleep = sleep

  def watch(
    self,
    paths: Callable[[], Iterable[str]],
    on_change: Callable[[List[str]], None],
    max_polls: Optional[int] = None,
  ) -> None:
    """
    Polls until interrupted, or ``max_polls`` rounds have passed.

    The snapshot is retaken after ``on_change`` returns, so writes made by
    the callback itself do not trigger another round.

    Args:
        paths: Returns the paths to watch; asked again after every change.
        on_change: Receives the changed paths.
        max_polls: Number of rounds, unbounded when None.
    """
    snapshot = take_snapshot(paths())
    polls = 0
    while max_polls is None or polls < max_polls:
      self._sleep(self.poll_interval)
      polls += 1

      changed = changed_paths(snapshot, take_snapshot(paths()))
      if not changed:
        continue

      logger.debug("Changed: %s", ", ".join(changed))
      on_change(changed)
      snapshot = take_snapshot(paths())
