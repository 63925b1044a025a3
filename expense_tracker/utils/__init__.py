"""Shared utility functions for the Expense Tracker core.

Convenience re-exports so consumers can import directly from
``expense_tracker.utils``.
"""

from expense_tracker.utils.general import JsonSafeType, convert_to_json_safe

__all__ = [
    "JsonSafeType",
    "convert_to_json_safe",
]
