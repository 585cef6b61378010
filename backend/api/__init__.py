"""API route handlers."""
from . import lots, options

__all__ = ["lots", "options"]
