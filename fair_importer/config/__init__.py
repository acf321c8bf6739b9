from .loader import ConfigValidationError, ImportSettings, load_settings

__all__ = ["ConfigValidationError", "ImportSettings", "load_settings"]
