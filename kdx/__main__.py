"""Entry point for `python -m kdx`.

Usage:
    python -m kdx pods -A --group-by app
"""

from __future__ import annotations

from kdx.cli import cli

cli(prog_name="kdx")
