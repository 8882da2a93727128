"""OdinSource: a personal catalogue of PDF documents and their tags."""

__version__ = "0.3.0"
