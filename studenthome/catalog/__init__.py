# studenthome/catalog/__init__.py
from .db import get_session, init_db, make_engine
from .maintenance import CatalogMaintenance
from .search import search
from .stats import catalog_stats
from .tables import PropertyImageRow, PropertyRow, UniversityRow
from .writer import CatalogWriter

__all__ = [
    "make_engine",
    "init_db",
    "get_session",
    "CatalogWriter",
    "CatalogMaintenance",
    "catalog_stats",
    "search",
    "PropertyRow",
    "PropertyImageRow",
    "UniversityRow",
]
