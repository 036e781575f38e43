"""
move_forge/api/__init__.py
HTTP layer.
"""

from .server import create_app

__all__ = ["create_app"]
