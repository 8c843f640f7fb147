"""
mpcasm Command-Line Interface
=============================

This package provides the ``mpcasm`` command, a Click-based front end to
the assembler with listing and label table output.
"""

__all__ = ["mpcasm"]
