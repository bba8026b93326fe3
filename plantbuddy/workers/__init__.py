"""
Workers module for long-running entry points.

This module contains:
- session_cli: headless controller session that logs every state change
"""

__all__ = ["session_cli"]
