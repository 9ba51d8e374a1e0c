"""rollcall - classroom roster tool built on a small module composition runtime."""

__version__ = "1.0.0"

__all__ = ["__version__"]
