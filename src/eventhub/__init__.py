"""EventHub: event listings with slugs, geocoded locations and cascading talk deletes."""

__version__ = "1.0.0"
