"""Blockfill - fee-maximizing block template selection under a time budget."""

__version__ = "0.1.0"
