"""Mode-handler validation and consistency engine for structured reasoning."""

__version__ = "0.1.0"
