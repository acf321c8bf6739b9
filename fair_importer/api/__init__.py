from .catalog import CatalogClient, CatalogError
from .service import ImportService

__all__ = ["CatalogClient", "CatalogError", "ImportService"]
