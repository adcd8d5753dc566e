"""Launcher Core: command catalog of installed macOS applications and settings panels."""

__version__ = "1.0.0"
