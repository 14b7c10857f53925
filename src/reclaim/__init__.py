"""reclaim - find and remove development build artifacts."""

__version__ = "0.1.0"
