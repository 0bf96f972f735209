"""Command-line interface for the search-index builder."""
