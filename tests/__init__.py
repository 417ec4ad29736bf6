# tests/__init__.py
"""
Expose common test utilities so tests can import directly:
    from tests import make_property, rightmove_item
"""

from .utils import catalog_item, loose_item, make_property, rightmove_item

__all__ = ["make_property", "rightmove_item", "catalog_item", "loose_item"]
