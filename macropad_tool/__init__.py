"""Parse, validate and upload key mappings to CH57x-based USB macro keypads."""

__version__ = "1.5.4"