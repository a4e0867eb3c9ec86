"""HiDPI display override generator for macOS."""

__version__ = "0.1.0"
