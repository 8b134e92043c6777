"""Hotel pricing document analysis service and dashboard client."""

__version__ = "0.1.0"
