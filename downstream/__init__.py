"""Downstream - locate forks with commits ahead of the upstream repository."""

__version__ = "0.1.0"
