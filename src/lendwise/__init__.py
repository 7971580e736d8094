"""Lendwise - a small lending engine for a catalog of loanable items."""

__version__ = "0.1.0"
