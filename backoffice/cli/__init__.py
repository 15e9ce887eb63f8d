"""Command line interface (``python -m backoffice.cli``)."""

from .__main__ import main

__all__ = ["main"]
