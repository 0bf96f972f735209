"""Static search-index builder for one section of a gallery website."""

__version__ = "1.0.0"
