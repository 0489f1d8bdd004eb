"""Multiple-choice quiz runner with AI hints and question generation."""

__all__ = ["__version__"]

__version__ = "0.1.0"
