"""Short, collision-free identifier registry service."""

__version__ = "0.1.0"
