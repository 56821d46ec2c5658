"""
HTTP and WebSocket surface for Meeting Reporter.
"""

from .main import app

__all__ = ["app"]
