"""Shared numeric limits and fixed texts."""

DAYS_PER_WEEK = 7
DEFAULT_FIRST_DAY_OF_WEEK = 0  # Sunday

DEFAULT_LIST_LIMIT = 500
# Upper bound when loading one week of bookings for a bulk edit
WEEK_SCAN_LIMIT = 10000

BULK_REMOVAL_REASON = "Removed in bulk schedule edit"
