"""CLB Tools: chemistry matrix/lookup conversion and stats preset interchange."""

__version__ = "1.0.0"
