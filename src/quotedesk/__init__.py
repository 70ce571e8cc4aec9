"""QuoteDesk - local admin service for a quote collection."""

__version__ = "0.1.0"
