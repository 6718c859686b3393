"""
Entry point for module execution (``python -m tsc_multi``).

This module delegates execution to the CLI handler in ``tsc_multi.cli.__main__``.
"""

import sys
from tsc_multi.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
