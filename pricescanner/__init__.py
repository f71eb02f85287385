"""eBay Price Scanner."""

__version__ = "1.0.0"
