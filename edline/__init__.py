"""Command history storage, search and navigation, with hinting and highlighting for line editors."""

__version__ = "0.1.0"