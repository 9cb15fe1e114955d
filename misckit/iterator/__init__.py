"""
Iterator helpers.
"""

from .batch import batched

__all__ = ["batched"]
