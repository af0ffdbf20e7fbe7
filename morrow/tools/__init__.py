"""
Tools package for Morrow.
Registered actions the dispatcher can run, with JSON-schema-like arguments.
"""
from morrow.tools.registry import build_default_registry

__all__ = ["build_default_registry"]
