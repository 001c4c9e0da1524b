"""Build and release packaging tools for Unity asset trees."""

__version__ = "0.1.0"
