"""Import fair and festival events from event pages."""

__version__ = "0.1.0"
