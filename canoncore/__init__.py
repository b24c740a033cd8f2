"""CanonCore: ordered content hierarchies with per-user progress tracking."""

__version__ = "1.0.0"
