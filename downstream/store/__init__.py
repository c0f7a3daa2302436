"""Result reporting."""

from .output import Reporter

__all__ = ["Reporter"]
