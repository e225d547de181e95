"""
Memory pool for Taichi fields.

Author: B.G.
"""

from .taipool import TaiPool, TPField, get_temp_field, stats, taipool

__all__ = ["TaiPool", "TPField", "get_temp_field", "stats", "taipool"]
