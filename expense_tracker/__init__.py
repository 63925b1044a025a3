"""Local-first personal income/expense tracking core with a remote REST mirror."""

__version__ = "1.0.0"
