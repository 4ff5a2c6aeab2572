"""Manage IIS websites through PowerShell's WebAdministration module."""

__version__ = "0.1.0"
__all__ = ["helpers", "runner", "websites"]