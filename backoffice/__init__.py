"""Retail back-office core: price/margin derivation and CSV bulk import."""

__version__ = "0.1.0"
