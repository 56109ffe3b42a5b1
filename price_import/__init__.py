"""Supplier price-list importer: spreadsheet analysis into role-tagged tables."""

__version__ = "0.1.0"
