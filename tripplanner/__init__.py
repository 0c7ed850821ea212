"""Multi-city trip route planner."""

__version__ = "1.0.0"
