"""ragctx: retrieval of analysis-document context for assistant conversations."""

__version__ = "0.1.0"

__all__ = ["__version__"]
