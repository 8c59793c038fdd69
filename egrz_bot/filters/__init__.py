"""
Filters package
"""

from egrz_bot.filters.access_filter import AccessTierFilter, IsAdmin


__all__ = ["AccessTierFilter", "IsAdmin"]
