"""Authorize access to shared resources and vend scoped AWS credentials."""

__version__ = "0.1.0"
