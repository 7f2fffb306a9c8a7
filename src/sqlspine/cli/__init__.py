"""
CLI layer for sqlspine.

Loads model definitions from YAML/JSON files and delegates to
:mod:`sqlspine.core.repository`.  This package handles only terminal
transport: argument parsing, coloured output, and table formatting.

Entry point::

    sqlspine --help
"""

from sqlspine.cli.app import app

__all__ = ["app"]
