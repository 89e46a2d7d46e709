"""kdx command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``kdx`` script).
"""

from kdx.cli.main import cli

__all__ = ["cli"]
