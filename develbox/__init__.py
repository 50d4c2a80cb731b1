"""Develbox — containerized per-project development environments."""

__version__ = "0.1.0"
