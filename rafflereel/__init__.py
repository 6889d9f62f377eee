"""Live prize drawing with a spinning reel."""

__version__ = "0.1.0"
