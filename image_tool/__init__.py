"""
.. include:: ../README.md
"""

__all__ = [
    "aru",
    "assembler",
    "build_command",
    "cache",
    "options",
    "exceptions",
    # Note this is exposed for CLI documentation, not to be used as a library
    "tool",
]
