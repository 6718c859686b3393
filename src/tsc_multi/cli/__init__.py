"""
CLI Subpackage.

Contains the command-line entry point and its command handlers.

Modules:
    - ``__main__``: The argparse definition and dispatcher.
    - ``commands``: Command handlers.
"""
