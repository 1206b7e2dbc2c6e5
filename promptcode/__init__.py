"""promptcode - generate, store and run code from a natural-language request."""

__version__ = "1.0.0"
