"""Command-line marble jar.

Named lists of items live as plain text files in the local data directory.
The command surface is implemented with Typer and Rich; list files stay
one item per line so they remain hand-editable.
"""

__all__ = ["__version__"]

__version__ = "0.1.0"
