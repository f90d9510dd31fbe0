"""API Routes"""

from . import health, seed

__all__ = ["health", "seed"]
