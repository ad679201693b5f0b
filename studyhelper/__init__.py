"""Study helper quiz engine."""

__version__ = "0.1.0"
