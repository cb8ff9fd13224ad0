"""Dependency Injection Container.

Manages store client lifecycle and config manager construction.
"""

from .container import Container

__all__ = ["Container"]
